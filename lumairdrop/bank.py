"""In-memory accounts, balances, token supply and community pool."""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .types import Coin, Coins

MINTER = "minter"
BURNER = "burner"
DISTRIBUTION_MODULE = "distribution"


class InsufficientFundsError(ValueError):
    """Raised when an account cannot spend the requested coins."""


def _module_address(name: str) -> str:
    return hashlib.sha256(name.encode()).digest()[:20].hex()


def _unix(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return math.floor(moment.timestamp())


def _normalize(coins: Any) -> Coins:
    return Coins().add(coins)


@dataclass
class BaseAccount:
    """A plain account identified by its address."""

    address: str


@dataclass
class ContinuousVestingAccount(BaseAccount):
    """An account whose original vesting unlocks linearly between two unix times."""

    original_vesting: Coins = field(default_factory=Coins)
    start_time: int = 0
    end_time: int = 0

    def _locked_coins(self, at: datetime | None) -> Coins:
        if at is None:
            return self.original_vesting
        now = _unix(at)
        if now <= self.start_time:
            return self.original_vesting
        if now >= self.end_time:
            return Coins()
        elapsed = now - self.start_time
        span = self.end_time - self.start_time
        return Coins(
            Coin(coin.denom, coin.amount - coin.amount * elapsed // span)
            for coin in self.original_vesting
        )


@dataclass
class ModuleAccount(BaseAccount):
    """An account owned by a module; its address derives from the module name."""

    address: str = field(init=False, default="")
    name: str = ""
    permissions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.address = _module_address(self.name)
        self.permissions = tuple(self.permissions)


class Ledger:
    """Accounts, balances, supply and the community pool of a chain.

    ``block_time`` is used to work out how much of a vesting account is still
    locked; when it is None all original vesting counts as locked.
    """

    def __init__(self, block_time: datetime | None = None) -> None:
        self.block_time = block_time
        self._accounts: dict[str, BaseAccount] = {}
        self._balances: dict[str, dict[str, int]] = {}
        self._supply: dict[str, int] = {}
        self._community_pool: dict[str, int] = {}

    def get_account(self, address: str) -> BaseAccount | None:
        return self._accounts.get(address)

    def set_account(self, account: BaseAccount) -> None:
        self._accounts[account.address] = account

    def module_address(self, name: str) -> str:
        return _module_address(name)

    def get_module_account(self, name: str) -> ModuleAccount | None:
        account = self._accounts.get(_module_address(name))
        return account if isinstance(account, ModuleAccount) else None

    def set_module_account(self, account: ModuleAccount) -> None:
        self.set_account(account)

    def _require_module(self, name: str) -> ModuleAccount:
        account = self.get_module_account(name)
        if account is None:
            raise LookupError(f"module account {name} does not exist")
        return account

    def _credit(self, address: str, coins: Coins) -> None:
        balances = self._balances.setdefault(address, {})
        for coin in coins:
            balances[coin.denom] = balances.get(coin.denom, 0) + coin.amount

    def _debit(self, address: str, coins: Coins) -> None:
        balances = self._balances.setdefault(address, {})
        for coin in coins:
            remaining = balances.get(coin.denom, 0) - coin.amount
            if remaining:
                balances[coin.denom] = remaining
            else:
                balances.pop(coin.denom, None)

    def _spendable_amount(self, address: str, denom: str) -> int:
        held = self._balances.get(address, {}).get(denom, 0)
        account = self._accounts.get(address)
        locked = 0
        if isinstance(account, ContinuousVestingAccount):
            locked = account._locked_coins(self.block_time).amount_of(denom)
        return max(held - locked, 0)

    def mint_coins(self, module: str, coins: Any) -> None:
        account = self._require_module(module)
        if MINTER not in account.permissions:
            raise PermissionError(
                f"module account {module} does not have permissions to mint tokens"
            )
        amounts = _normalize(coins)
        self._credit(account.address, amounts)
        for coin in amounts:
            self._supply[coin.denom] = self._supply.get(coin.denom, 0) + coin.amount

    def balance(self, address: str, denom: str) -> Coin:
        return Coin(denom, self._balances.get(address, {}).get(denom, 0))

    def all_balances(self, address: str) -> Coins:
        held = self._balances.get(address, {})
        return Coins(Coin(d, a) for d, a in sorted(held.items()) if a)

    def send_coins(self, sender: str, recipient: str, coins: Any) -> None:
        amounts = _normalize(coins)
        for coin in amounts:
            spendable = self._spendable_amount(sender, coin.denom)
            if spendable < coin.amount:
                raise InsufficientFundsError(
                    f"{spendable}{coin.denom} is smaller than {coin}"
                )
        self._debit(sender, amounts)
        self._credit(recipient, amounts)
        if recipient not in self._accounts:
            self._accounts[recipient] = BaseAccount(recipient)

    def send_from_module_to_account(self, module: str, address: str, coins: Any) -> None:
        account = self._require_module(module)
        self.send_coins(account.address, address, coins)

    def fund_community_pool(self, coins: Any, sender: str) -> None:
        amounts = _normalize(coins)
        if amounts.is_empty():
            return
        if self.get_module_account(DISTRIBUTION_MODULE) is None:
            self.set_module_account(ModuleAccount(DISTRIBUTION_MODULE))
        self.send_coins(sender, _module_address(DISTRIBUTION_MODULE), amounts)
        for coin in amounts:
            self._community_pool[coin.denom] = (
                self._community_pool.get(coin.denom, 0) + coin.amount
            )

    def supply(self, denom: str) -> Coin:
        return Coin(denom, self._supply.get(denom, 0))

    def community_pool(self) -> Coins:
        return Coins(Coin(d, a) for d, a in sorted(self._community_pool.items()) if a)