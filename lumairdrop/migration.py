"""In-place store migrations for the airdrop module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .bank import MINTER, Ledger, ModuleAccount
from .keeper import Keeper
from .types import MODULE_NAME, ClaimRecord, Coin, Coins


def migrate_module_balance(ledger: Ledger, claim_records: Iterable[ClaimRecord]) -> None:
    """Mint whatever the airdrop module account lacks to cover every claim record.

    The module account is created first if it does not exist yet. Balances that
    already cover the claimable totals are left untouched.
    """
    required = Coins()
    for record in claim_records:
        required = required.add(record.initial_claimable_amount)

    if ledger.get_module_account(MODULE_NAME) is None:
        ledger.set_module_account(ModuleAccount(name=MODULE_NAME, permissions=(MINTER,)))

    current = ledger.all_balances(ledger.module_address(MODULE_NAME))
    for coin in required:
        held = current.amount_of(coin.denom)
        if held < coin.amount:
            ledger.mint_coins(MODULE_NAME, Coins([Coin(coin.denom, coin.amount - held)]))


@dataclass
class Migrator:
    """Runs the module's in-place migrations against a keeper."""

    keeper: Keeper

    def migrate_2_to_3(self) -> None:
        """Migrate from consensus version 2 to 3: fix the module account balance."""
        migrate_module_balance(self.keeper.ledger, self.keeper.claim_records())