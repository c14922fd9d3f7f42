"""Airdrop keeper: claim records, claimable amounts, claims and hooks."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from fractions import Fraction

from .bank import MINTER, ContinuousVestingAccount, Ledger, ModuleAccount
from .types import (
    DEFAULT_BOND_DENOM,
    EVENT_TYPE_CLAIM,
    MODULE_NAME,
    Action,
    ClaimRecord,
    Coin,
    Coins,
    Params,
)

_DEC_SCALE = 10**18


class ClaimError(Exception):
    """Raised when a claim cannot be computed or carried out."""


@dataclass(frozen=True)
class Event:
    """An event emitted while processing a block or transaction."""

    type: str
    attributes: tuple[tuple[str, str], ...] = ()


@dataclass
class Context:
    """Block time plus the events emitted so far.

    Contexts derived with ``with_block_time`` share the same event list.
    """

    block_time: datetime
    events: list[Event] = field(default_factory=list)

    def with_block_time(self, block_time: datetime) -> "Context":
        return replace(self, block_time=block_time)


def _nanoseconds(duration: timedelta) -> int:
    return (duration // timedelta(microseconds=1)) * 1000


def _check_address(address: str) -> None:
    if not address:
        raise ValueError("empty address string is not allowed")


def _copy_record(record: ClaimRecord) -> ClaimRecord:
    return ClaimRecord(
        address=record.address,
        initial_claimable_amount=Coins(record.initial_claimable_amount),
        action_completed=list(record.action_completed),
    )


class Keeper:
    """Keeps the airdrop parameters and claim records and pays out claims."""

    def __init__(self, ledger: Ledger | None = None) -> None:
        self.ledger = ledger if ledger is not None else Ledger()
        self._params: Params | None = None
        self._records: dict[str, ClaimRecord] = {}

    # -- module account -------------------------------------------------

    def airdrop_account(self) -> str:
        return self.ledger.module_address(MODULE_NAME)

    def create_module_account(self, amount: Coin) -> None:
        self.ledger.set_module_account(ModuleAccount(name=MODULE_NAME, permissions=(MINTER,)))
        self.ledger.mint_coins(MODULE_NAME, Coins([amount]))

    def airdrop_account_balance(self) -> Coin:
        return self.ledger.balance(self.airdrop_account(), self.get_params().claim_denom)

    # -- params ---------------------------------------------------------

    def get_params(self) -> Params:
        if self._params is None:
            return Params()
        return replace(self._params)

    def set_params(self, params: Params) -> None:
        self._params = replace(params)

    # -- end of airdrop -------------------------------------------------

    def end_airdrop(self) -> None:
        """Send what is left to the community pool and clear all claim records."""
        balance = self.airdrop_account_balance()
        self.ledger.fund_community_pool(Coins([balance]), self.airdrop_account())
        self._records.clear()

    # -- claim records --------------------------------------------------

    def set_claim_records(self, records) -> None:
        for record in records:
            self.set_claim_record(record)

    def claim_records(self) -> list[ClaimRecord]:
        return [_copy_record(self._records[key]) for key in sorted(self._records)]

    def claim_record(self, address: str) -> ClaimRecord:
        record = self._records.get(address)
        return ClaimRecord() if record is None else _copy_record(record)

    def set_claim_record(self, record: ClaimRecord) -> None:
        _check_address(record.address)
        self._records[record.address] = _copy_record(record)

    # -- claimable amounts ----------------------------------------------

    def claimable_for_action(self, ctx: Context, address: str, action: Action) -> tuple[Coin, Coin]:
        """Return the (free, vested) coins claimable for an action."""
        params = self.get_params()
        zero = Coin(DEFAULT_BOND_DENOM, 0)

        record = self.claim_record(address)
        if not record.address:
            return zero, zero

        action = Action(action)
        if len(record.action_completed) > action and record.action_completed[action]:
            return zero, zero

        if ctx.block_time < params.airdrop_start_time:
            return zero, zero

        # Kept apart on purpose: entries of the same denomination are not merged.
        per_action = [
            Coin(coin.denom, coin.amount // len(Action))
            for coin in record.initial_claimable_amount
        ]
        if len(per_action) != 2:
            raise ClaimError("invalid claimable entry")

        elapsed = ctx.block_time - params.airdrop_start_time
        if elapsed <= params.duration_until_decay:
            return per_action[0], per_action[1]

        if elapsed > params.duration_until_decay + params.duration_of_decay:
            return zero, zero

        decay_ns = _nanoseconds(elapsed - params.duration_until_decay)
        decay_ratio = Fraction(
            round(Fraction(decay_ns * _DEC_SCALE, _nanoseconds(params.duration_of_decay))),
            _DEC_SCALE,
        )
        claimable_ratio = 1 - decay_ratio

        claimable = Coins()
        for coin in per_action:
            claimable = claimable.add(Coin(coin.denom, round(coin.amount * claimable_ratio)))
        if len(claimable) < 2:
            raise ClaimError("invalid claimable entry")
        return claimable[0], claimable[1]

    def total_claimable(self, ctx: Context, address: str) -> tuple[Coin, Coin]:
        """Return the (free, vested) coins still claimable over all actions."""
        params = self.get_params()
        free = Coin(params.claim_denom, 0)
        vested = Coin(params.claim_denom, 0)

        if not self.claim_record(address).address:
            return free, vested

        for action in Action:
            action_free, action_vested = self.claimable_for_action(ctx, address, action)
            if action_free.denom != free.denom or action_vested.denom != vested.denom:
                raise ClaimError("inconsistent claimable entry")
            free = Coin(free.denom, free.amount + action_free.amount)
            vested = Coin(vested.denom, vested.amount + action_vested.amount)
        return free, vested

    # -- claiming -------------------------------------------------------

    def claim_for_action(self, ctx: Context, address: str, action: Action) -> tuple[Coin, Coin]:
        """Pay out the claimable coins for an action and mark it completed."""
        action = Action(action)
        free, vested = self.claimable_for_action(ctx, address, action)
        if free.is_zero() and vested.is_zero():
            return free, vested

        record = self.claim_record(address)

        self.ledger.send_from_module_to_account(MODULE_NAME, address, Coins([free]).add(vested))

        if not vested.is_zero():
            account = self.ledger.get_account(address)
            if account is None:
                raise ClaimError("account not found")
            if not isinstance(account, ContinuousVestingAccount):
                raise ClaimError("account should have continuous vesting type")
            account.original_vesting = account.original_vesting.add(vested)
            self.ledger.set_account(account)

        if len(record.action_completed) <= action:
            raise ClaimError(f"no completion flag for action {action}")
        record.action_completed[action] = True
        self.set_claim_record(record)

        ctx.events.append(
            Event(
                EVENT_TYPE_CLAIM,
                (
                    ("sender", address),
                    ("amount", str(free)),
                    ("amount_vested", str(vested)),
                ),
            )
        )
        return free, vested

    # -- hooks ----------------------------------------------------------

    def after_proposal_vote(self, ctx: Context, proposal_id: int, voter: str) -> None:
        self.claim_for_action(ctx, voter, Action.VOTE)

    def after_delegation_modified(self, ctx: Context, delegator: str, validator: str) -> None:
        self.claim_for_action(ctx, delegator, Action.DELEGATE_STAKE)

    def hooks(self) -> "Hooks":
        return Hooks(self)

    # -- queries --------------------------------------------------------

    def query_module_account_balance(self) -> Coins:
        return Coins().add(self.airdrop_account_balance())

    def query_params(self) -> Params:
        return self.get_params()

    def query_claim_record(self, address: str) -> ClaimRecord:
        _check_address(address)
        return self.claim_record(address)

    def query_claimable_for_action(self, ctx: Context, address: str, action: Action) -> Coins:
        _check_address(address)
        return Coins(self.claimable_for_action(ctx, address, action))

    def query_total_claimable(self, ctx: Context, address: str) -> Coins:
        _check_address(address)
        return Coins(self.total_claimable(ctx, address))


@dataclass
class Hooks:
    """Governance and staking hooks that trigger airdrop claims."""

    keeper: Keeper

    def after_proposal_vote(self, ctx: Context, proposal_id: int, voter: str) -> None:
        self.keeper.after_proposal_vote(ctx, proposal_id, voter)

    def after_delegation_modified(self, ctx: Context, delegator: str, validator: str) -> None:
        self.keeper.after_delegation_modified(ctx, delegator, validator)