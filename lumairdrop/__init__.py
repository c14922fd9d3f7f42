"""Airdrop claim records, decaying per-action claimable amounts, vesting payouts and genesis state."""

__version__ = "1.0.4"

__all__ = ["bank", "keeper", "migration", "types"]