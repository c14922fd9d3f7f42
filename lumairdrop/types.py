"""Airdrop data types: coins, parameters, claim records and genesis state."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Any, Iterable, Iterator, Mapping

MODULE_NAME = "airdrop"
STORE_KEY = MODULE_NAME
ROUTER_KEY = MODULE_NAME
QUERIER_ROUTE = MODULE_NAME
MEM_STORE_KEY = "mem_airdrop"
CLAIM_RECORDS_STORE_PREFIX = "claimrecords"
PARAMS_KEY = "params"
ACTION_KEY = "action"

EVENT_TYPE_CLAIM = "claim"

DEFAULT_INDEX = 1
DEFAULT_BOND_DENOM = "ulum"
DEFAULT_CLAIM_DENOM = "ulum"
DEFAULT_DURATION_UNTIL_DECAY = timedelta(hours=1)
DEFAULT_DURATION_OF_DECAY = timedelta(hours=5)

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_DENOM_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9/:._-]{2,127}")
_TIME_RE = re.compile(
    r"(\d{4,})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)
_MICROS = 10**6


class ValidationError(ValueError):
    """Raised when a coin, parameter set or genesis state is invalid."""


class Action(IntEnum):
    """Actions a claimant completes to unlock a share of the airdrop."""

    VOTE = 0
    DELEGATE_STAKE = 1

    @property
    def proto_name(self) -> str:
        return _ACTION_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> "Action":
        for action, action_name in _ACTION_NAMES.items():
            if action_name == name:
                return action
        raise ValueError(
            f"invalid Action type: {name}.  Valid actions are "
            f"{_ACTION_NAMES[cls.VOTE]}, {_ACTION_NAMES[cls.DELEGATE_STAKE]}"
        )

    def __str__(self) -> str:
        return self.proto_name


_ACTION_NAMES = {
    Action.VOTE: "ActionVote",
    Action.DELEGATE_STAKE: "ActionDelegateStake",
}


@dataclass(frozen=True)
class Coin:
    """An amount of a single denomination."""

    denom: str = ""
    amount: int = 0

    def _check_denom(self, other: "Coin") -> None:
        if other.denom != self.denom:
            raise ValueError(
                f"invalid coin denominations; {self.denom}, {other.denom}"
            )

    def add(self, other: "Coin") -> "Coin":
        self._check_denom(other)
        return Coin(self.denom, self.amount + other.amount)

    def sub(self, other: "Coin") -> "Coin":
        self._check_denom(other)
        result = self.amount - other.amount
        if result < 0:
            raise ValueError(f"negative coin amount: {result}")
        return Coin(self.denom, result)

    def is_zero(self) -> bool:
        return self.amount == 0

    def validate(self) -> None:
        if not _DENOM_RE.fullmatch(self.denom):
            raise ValidationError(f"invalid denom: {self.denom}")
        if self.amount < 0:
            raise ValidationError(f"negative coin amount: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


class Coins:
    """An ordered collection of coins.

    Constructing from an iterable keeps the coins exactly as given; ``add``
    returns a normalised collection: merged by denomination, zero amounts
    dropped and sorted by denomination.
    """

    __slots__ = ("_items",)

    def __init__(self, coins: Iterable[Coin] = ()) -> None:
        self._items: tuple[Coin, ...] = tuple(coins)

    @staticmethod
    def _flatten(args: Iterable[Any]) -> Iterator[Coin]:
        for arg in args:
            if isinstance(arg, Coin):
                yield arg
            else:
                for coin in arg:
                    if not isinstance(coin, Coin):
                        raise TypeError(f"expected Coin, got {type(coin).__name__}")
                    yield coin

    def add(self, *args: Any) -> "Coins":
        totals: dict[str, int] = {}
        for coin in self._flatten((self._items, *args)):
            totals[coin.denom] = totals.get(coin.denom, 0) + coin.amount
        negative = [Coin(d, a) for d, a in totals.items() if a < 0]
        if negative:
            raise ValueError(f"negative coin amount: {negative[0]}")
        return Coins(Coin(d, a) for d, a in sorted(totals.items()) if a != 0)

    def amount_of(self, denom: str) -> int:
        return sum(coin.amount for coin in self._items if coin.denom == denom)

    def is_empty(self) -> bool:
        return not self._items

    def __iter__(self) -> Iterator[Coin]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Coins(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Coins):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Coins({list(self._items)!r})"

    def __str__(self) -> str:
        return ",".join(str(coin) for coin in self._items)


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"invalid amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value):
        return int(value)
    raise ValidationError(f"invalid amount: {value!r}")


def _coin_to_dict(coin: Coin) -> dict[str, str]:
    return {"denom": coin.denom, "amount": str(coin.amount)}


def _coin_from_dict(data: Mapping[str, Any] | None) -> Coin:
    data = data or {}
    return Coin(str(data.get("denom", "")), _parse_amount(data.get("amount", 0)))


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


def _parse_time(text: Any) -> datetime:
    match = _TIME_RE.fullmatch(text) if isinstance(text, str) else None
    if match is None:
        raise ValidationError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    if offset == "Z":
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
    try:
        moment = datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tz
        )
    except ValueError as exc:
        raise ValidationError(f"invalid timestamp: {text!r}") from exc
    return moment.astimezone(timezone.utc)


def _format_duration(duration: timedelta) -> str:
    micros = duration // timedelta(microseconds=1)
    if micros % _MICROS == 0:
        return f"{micros // _MICROS}s"
    seconds = (Decimal(micros) / _MICROS).normalize()
    return f"{seconds:f}s"


def _parse_duration(text: Any) -> timedelta:
    if not isinstance(text, str) or not text.endswith("s"):
        raise ValidationError(f"invalid duration: {text!r}")
    try:
        seconds = Decimal(text[:-1])
    except InvalidOperation as exc:
        raise ValidationError(f"invalid duration: {text!r}") from exc
    if not seconds.is_finite():
        raise ValidationError(f"invalid duration: {text!r}")
    return timedelta(microseconds=int(seconds * _MICROS))


@dataclass
class Params:
    """Airdrop timing and denomination parameters."""

    airdrop_start_time: datetime = ZERO_TIME
    duration_until_decay: timedelta = timedelta(0)
    duration_of_decay: timedelta = timedelta(0)
    claim_denom: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "airdrop_start_time": _format_time(self.airdrop_start_time),
            "duration_until_decay": _format_duration(self.duration_until_decay),
            "duration_of_decay": _format_duration(self.duration_of_decay),
            "claim_denom": self.claim_denom,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Params":
        data = data or {}
        start = data.get("airdrop_start_time")
        until = data.get("duration_until_decay")
        of = data.get("duration_of_decay")
        return cls(
            airdrop_start_time=ZERO_TIME if start is None else _parse_time(start),
            duration_until_decay=timedelta(0) if until is None else _parse_duration(until),
            duration_of_decay=timedelta(0) if of is None else _parse_duration(of),
            claim_denom=str(data.get("claim_denom", "")),
        )


@dataclass
class ClaimRecord:
    """What an address may claim and which actions it has completed."""

    address: str = ""
    initial_claimable_amount: Coins = field(default_factory=Coins)
    action_completed: list[bool] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "initial_claimable_amount": [
                _coin_to_dict(coin) for coin in self.initial_claimable_amount
            ],
            "action_completed": list(self.action_completed),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ClaimRecord":
        data = data or {}
        return cls(
            address=str(data.get("address", "")),
            initial_claimable_amount=Coins(
                _coin_from_dict(item) for item in data.get("initial_claimable_amount") or []
            ),
            action_completed=[bool(flag) for flag in data.get("action_completed") or []],
        )


@dataclass
class GenesisState:
    """The airdrop module's genesis state."""

    module_account_balance: Coin = Coin()
    params: Params = field(default_factory=Params)
    claim_records: list[ClaimRecord] = field(default_factory=list)

    def validate(self) -> None:
        self.module_account_balance.validate()

        claim_denom = self.params.claim_denom
        total = Coin(claim_denom, 0)
        for record in self.claim_records:
            for claimable in record.initial_claimable_amount:
                try:
                    claimable.validate()
                except ValidationError as exc:
                    raise ValidationError(
                        f"Claimable invalid for address {record.address}"
                    ) from exc
                if claimable.denom != claim_denom:
                    raise ValidationError(
                        f"Tried to commit invalid denom {claimable.denom}"
                    )
                total = total.add(claimable)

        balance = self.module_account_balance
        if claim_denom != balance.denom:
            raise ValidationError(
                f"Denom for module and claim does not match {claim_denom} != {balance.denom}"
            )
        if total != balance:
            raise ValidationError(
                f"Balance is different from total of claimable: {total} != {balance}"
            )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "module_account_balance": _coin_to_dict(self.module_account_balance),
            "params": self.params.to_dict(),
            "claim_records": [record.to_dict() for record in self.claim_records],
        }

    @classmethod
    def _from_dict(cls, data: Any) -> "GenesisState":
        if not isinstance(data, Mapping):
            raise ValidationError("genesis state must be a JSON object")
        return cls(
            module_account_balance=_coin_from_dict(data.get("module_account_balance")),
            params=Params.from_dict(data.get("params")),
            claim_records=[
                ClaimRecord.from_dict(item) for item in data.get("claim_records") or []
            ],
        )

    def to_json(self) -> str:
        return json.dumps(self._to_dict())

    @classmethod
    def from_json(cls, text: str | bytes) -> "GenesisState":
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError(f"failed to unmarshal {MODULE_NAME} genesis state: {exc}") from exc
        return cls._from_dict(data)


def default_genesis() -> GenesisState:
    """Return the default genesis state."""
    return GenesisState(
        module_account_balance=Coin(DEFAULT_CLAIM_DENOM, 0),
        params=Params(
            airdrop_start_time=ZERO_TIME,
            duration_until_decay=DEFAULT_DURATION_UNTIL_DECAY,
            duration_of_decay=DEFAULT_DURATION_OF_DECAY,
            claim_denom=DEFAULT_CLAIM_DENOM,
        ),
        claim_records=[],
    )


def genesis_state_from_app_state(app_state: Mapping[str, Any]) -> GenesisState:
    """Extract the airdrop genesis state from an application genesis mapping."""
    raw = app_state.get(MODULE_NAME)
    if raw is None:
        return GenesisState()
    if isinstance(raw, Mapping):
        return GenesisState._from_dict(raw)
    return GenesisState.from_json(raw)