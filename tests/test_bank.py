from datetime import datetime, timedelta, timezone

import pytest

from lumairdrop.bank import (
    MINTER,
    BaseAccount,
    ContinuousVestingAccount,
    InsufficientFundsError,
    Ledger,
    ModuleAccount,
)
from lumairdrop.types import DEFAULT_BOND_DENOM, Coin, Coins

DENOM = DEFAULT_BOND_DENOM
START = datetime(2022, 3, 1, tzinfo=timezone.utc)
START_TS = int(START.timestamp())
DAY = 24 * 60 * 60


def _ledger(amount=1_000, block_time=None):
    ledger = Ledger(block_time=block_time)
    ledger.set_module_account(ModuleAccount("airdrop", (MINTER,)))
    ledger.mint_coins("airdrop", Coins([Coin(DENOM, amount)]))
    return ledger


def _vesting_ledger(block_time):
    ledger = _ledger(block_time=block_time)
    ledger.set_account(
        ContinuousVestingAccount(
            "lum1vest", Coins([Coin(DENOM, 100)]), START_TS, START_TS + DAY
        )
    )
    ledger.send_from_module_to_account("airdrop", "lum1vest", Coins([Coin(DENOM, 150)]))
    return ledger


def test_mint_increases_supply_and_module_balance():
    ledger = _ledger(1_000)
    assert ledger.supply(DENOM) == Coin(DENOM, 1_000)
    assert ledger.balance(ledger.module_address("airdrop"), DENOM) == Coin(DENOM, 1_000)


def test_module_address_is_deterministic():
    ledger = Ledger()
    assert ledger.module_address("airdrop") == ModuleAccount("airdrop").address
    assert ledger.module_address("airdrop") != ledger.module_address("distribution")
    assert len(ledger.module_address("airdrop")) == 40


def test_module_account_set_and_get():
    ledger = Ledger()
    assert ledger.get_module_account("airdrop") is None
    account = ModuleAccount("airdrop", (MINTER,))
    ledger.set_module_account(account)
    assert ledger.get_module_account("airdrop") == account
    assert ledger.get_account(account.address) == account


def test_mint_unknown_module_raises():
    with pytest.raises(LookupError):
        Ledger().mint_coins("airdrop", Coins([Coin(DENOM, 1)]))


def test_mint_without_minter_permission_raises():
    ledger = Ledger()
    ledger.set_module_account(ModuleAccount("airdrop"))
    with pytest.raises(PermissionError):
        ledger.mint_coins("airdrop", Coins([Coin(DENOM, 1)]))


def test_send_from_module_moves_coins_not_supply():
    ledger = _ledger(1_000)
    ledger.send_from_module_to_account("airdrop", "lum1addr1", Coins([Coin(DENOM, 300)]))
    assert ledger.all_balances("lum1addr1") == Coins([Coin(DENOM, 300)])
    assert ledger.balance(ledger.module_address("airdrop"), DENOM) == Coin(DENOM, 1_000 - 300)
    assert ledger.supply(DENOM) == Coin(DENOM, 1_000)
    assert ledger.get_account("lum1addr1") == BaseAccount("lum1addr1")


def test_send_insufficient_funds_leaves_balances():
    ledger = _ledger(100)
    with pytest.raises(InsufficientFundsError):
        ledger.send_from_module_to_account("airdrop", "lum1addr1", Coin(DENOM, 101))
    assert ledger.all_balances("lum1addr1").is_empty()
    assert ledger.balance(ledger.module_address("airdrop"), DENOM) == Coin(DENOM, 100)


def test_send_from_missing_module_raises():
    with pytest.raises(LookupError):
        Ledger().send_from_module_to_account("airdrop", "lum1addr1", Coin(DENOM, 1))


def test_vesting_coins_are_locked_at_start():
    ledger = _vesting_ledger(START)
    with pytest.raises(InsufficientFundsError):
        ledger.send_coins("lum1vest", "lum1addr2", Coins([Coin(DENOM, 150)]))
    ledger.send_coins("lum1vest", "lum1addr2", Coins([Coin(DENOM, 50)]))
    assert ledger.balance("lum1vest", DENOM) == Coin(DENOM, 150 - 50)
    assert ledger.balance("lum1addr2", DENOM) == Coin(DENOM, 50)


def test_vesting_coins_unlock_after_end():
    ledger = _vesting_ledger(START + timedelta(days=2))
    ledger.send_coins("lum1vest", "lum1addr2", Coins([Coin(DENOM, 150)]))
    assert ledger.all_balances("lum1vest").is_empty()


def test_vesting_partially_unlocked_halfway():
    ledger = _vesting_ledger(START + timedelta(hours=12))
    with pytest.raises(InsufficientFundsError):
        ledger.send_coins("lum1vest", "lum1addr2", Coin(DENOM, 101))
    ledger.send_coins("lum1vest", "lum1addr2", Coin(DENOM, 100))
    assert ledger.balance("lum1addr2", DENOM) == Coin(DENOM, 100)


def test_vesting_without_block_time_locks_everything():
    ledger = _vesting_ledger(None)
    with pytest.raises(InsufficientFundsError):
        ledger.send_coins("lum1vest", "lum1addr2", Coin(DENOM, 51))
    ledger.send_coins("lum1vest", "lum1addr2", Coin(DENOM, 50))
    assert ledger.balance("lum1vest", DENOM) == Coin(DENOM, 100)


def test_set_account_replaces_vesting_state():
    ledger = Ledger()
    account = ContinuousVestingAccount("lum1vest", Coins(), START_TS, START_TS + DAY)
    ledger.set_account(account)
    account.original_vesting = account.original_vesting.add(Coin(DENOM, 25))
    ledger.set_account(account)
    stored = ledger.get_account("lum1vest")
    assert stored.original_vesting.amount_of(DENOM) == 25


def test_fund_community_pool():
    ledger = _ledger(1_000)
    module = ledger.module_address("airdrop")
    assert ledger.community_pool().is_empty()
    ledger.fund_community_pool(Coins([Coin(DENOM, 400)]), module)
    assert ledger.community_pool() == Coins([Coin(DENOM, 400)])
    assert ledger.balance(module, DENOM) == Coin(DENOM, 1_000 - 400)
    assert ledger.supply(DENOM) == Coin(DENOM, 1_000)


def test_fund_community_pool_with_zero_is_noop():
    ledger = _ledger(1_000)
    module = ledger.module_address("airdrop")
    ledger.fund_community_pool(Coins([Coin(DENOM, 0)]), module)
    assert ledger.community_pool().is_empty()
    assert ledger.balance(module, DENOM) == Coin(DENOM, 1_000)


def test_all_balances_unknown_address_is_empty():
    assert Ledger().all_balances("lum1nobody").is_empty()