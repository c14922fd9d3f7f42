# lumairdrop

Airdrop claim accounting. Each address in an airdrop has a claim record that
holds two amounts. The first is paid out freely. The second is paid into the
holder's continuous vesting account. Both amounts are split evenly between
the claimable actions, `Action.VOTE` and `Action.DELEGATE_STAKE`. An address
earns its share for an action the first time it performs that action.

Until `duration_until_decay` has passed after `airdrop_start_time`, the full
share can be claimed. Over the next `duration_of_decay` the share falls in a
straight line to nothing. Once both periods are over, nothing more can be
claimed. Before the start time, nothing can be claimed either.

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```python
from datetime import datetime, timezone

from lumairdrop.bank import BaseAccount, ContinuousVestingAccount, Ledger
from lumairdrop.keeper import Context, Keeper
from lumairdrop.types import (
    DEFAULT_DURATION_OF_DECAY, DEFAULT_DURATION_UNTIL_DECAY,
    Action, ClaimRecord, Coin, Coins, Params,
)

start = datetime(2022, 1, 1, tzinfo=timezone.utc)
keeper = Keeper(Ledger())
keeper.create_module_account(Coin("ulum", 1_000))
keeper.set_params(Params(start, DEFAULT_DURATION_UNTIL_DECAY, DEFAULT_DURATION_OF_DECAY, "ulum"))

keeper.ledger.set_account(ContinuousVestingAccount("addr1"))
keeper.set_claim_records([
    ClaimRecord("addr1", Coins([Coin("ulum", 100), Coin("ulum", 200)]), [False, False]),
])

ctx = Context(block_time=start)
keeper.claimable_for_action(ctx, "addr1", Action.VOTE)   # (50ulum, 100ulum)
keeper.hooks().after_proposal_vote(ctx, 1, "addr1")      # pays 150ulum, 100 of it vesting
keeper.total_claimable(ctx, "addr1")                     # (50ulum, 100ulum)
```

## Modules

### `lumairdrop.types`

- `Coin(denom, amount)`: `add`, `sub` (raises `ValueError` when the
  denominations differ or the result is negative), `is_zero` and `validate`.
- `Coins`: an ordered collection of coins. Built from an iterable, it keeps
  the coins exactly as given. `add(*coins_or_iterables)` returns a normalised
  collection: coins are merged by denomination, zero amounts are dropped, and
  the result is sorted. It also has `amount_of(denom)` and `is_empty()`.
- `Action`: `VOTE` and `DELEGATE_STAKE`, with `proto_name` and `from_name()`.
- `Params`: the start time, the two durations and the claim denomination,
  with `to_dict()` and `from_dict()`. Times are written in RFC 3339 UTC form
  and durations as seconds with an `s` suffix.
- `ClaimRecord`: the address, the initial claimable amounts and the
  completion flags for each action, with `to_dict()` and `from_dict()`.
- `GenesisState`: the module account balance, the params and the claim
  records. `validate()` checks every coin and requires all claimable coins to
  use the claim denomination. It also requires the claimable amounts to add
  up exactly to the module account balance. `to_json()` and `from_json()`
  round-trip the state.
- `default_genesis()` returns a zero `ulum` balance, a start time of zero,
  decay after one hour and a decay period of five hours.
- `genesis_state_from_app_state(app_state)` reads the `"airdrop"` entry of
  an application genesis mapping. The entry may be a mapping or JSON text.
  When the entry is missing, it returns an empty state.
- `ValidationError` (a `ValueError`) is raised for invalid coins, params and
  genesis states.

### `lumairdrop.bank`

`Ledger` is an in-memory store. It holds accounts, balances, the total
supply and the community pool. Its methods are:

- `get_account`, `set_account`
- `module_address`, `get_module_account`, `set_module_account`
- `mint_coins` (the module account needs the `minter` permission)
- `balance`, `all_balances`
- `send_coins`, `send_from_module_to_account`
- `fund_community_pool`
- `supply`, `community_pool`

The account types are `BaseAccount`, `ContinuousVestingAccount` and
`ModuleAccount`. A module account's address is derived from its name.

A vesting account cannot spend coins that are still locked. When
`Ledger.block_time` is set, the locked part shrinks linearly between the
account's `start_time` and `end_time`, which are unix seconds. When
`block_time` is `None`, all of the original vesting counts as locked.

`InsufficientFundsError` is raised when a transfer exceeds what the sender
can spend.

### `lumairdrop.keeper`

`Keeper(ledger=None)` stores the params and claim records and pays out
claims from the `airdrop` module account. Its methods fall into these groups:

- Module account and params: `create_module_account`, `airdrop_account`,
  `airdrop_account_balance`, `get_params`, `set_params`.
- Claim records: `set_claim_record`, `set_claim_records`, `claim_record`,
  `claim_records`. `claim_record` returns an empty record for an unknown
  address, and `claim_records` sorts its result by address.
- Claims: `claimable_for_action` and `total_claimable` both return a
  `(free, vested)` pair of coins. `claim_for_action` sends the coins and adds
  the vested part to the account's original vesting. It then marks the
  action completed and appends a `claim` `Event` to the context.
- Ending the airdrop: `end_airdrop` sends the module account's balance to
  the community pool and clears every claim record.
- Hooks: `after_proposal_vote` and `after_delegation_modified` claim for the
  matching action. `hooks()` returns a `Hooks` object that forwards the same
  two calls.
- Queries: `query_module_account_balance`, `query_params`,
  `query_claim_record`, `query_claimable_for_action`,
  `query_total_claimable`. A query with an empty address raises
  `ValueError`.

`Context(block_time)` carries the block time and a list of emitted events.
`with_block_time()` gives a copy that shares the same event list.

`ClaimError` is raised in these cases:

- a claim record does not hold exactly two claimable entries;
- the claimable entries are inconsistent with each other;
- the account is missing, or is not a continuous vesting account, when
  vested coins are due.

### `lumairdrop.migration`

- `migrate_module_balance(ledger, claim_records)` creates the `airdrop`
  module account if it is missing. It then mints whatever the account lacks
  to cover the total of all claim records.
- `Migrator(keeper).migrate_2_to_3()` runs that migration against the
  keeper's own ledger and records.

## What this package does not do

This package is a library of accounting objects. It has no command-line
tool, no server, and no storage beyond memory. It also has no application
module wrapper. Loading a genesis state into a `Keeper` and exporting one
from it is left to the caller, who can use `create_module_account`,
`set_params`, `set_claim_records`, `airdrop_account_balance`, `get_params`
and `claim_records`. Calling `end_airdrop` once the decay period is over is
also left to the caller. Nothing here routes or handles transaction
messages.