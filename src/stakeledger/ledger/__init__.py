"""Ledger package.

Public API:
- StakingLedger: stake/claim/withdraw accounting over a shared reward pool.
- Position, LockParams: per-account record and lock/vesting windows.
- write_state, read_state: parquet snapshots of ledger state.
"""

from .ledger import StakingLedger  # re-export
from .model import LockParams, Position, SECONDS_PER_DAY
from .store import read_state, write_state
