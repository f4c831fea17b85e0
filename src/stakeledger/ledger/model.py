from __future__ import annotations

from dataclasses import dataclass

SECONDS_PER_DAY = 86_400


@dataclass
class Position:
    staked_amount: int = 0
    locked_until: int = 0
    yield_available: int = 0
    yield_locked: int = 0
    last_yield_update: int = 0


@dataclass(frozen=True)
class LockParams:
    """Lock and vesting windows, in seconds."""
    max_lock: int = 365 * SECONDS_PER_DAY
    min_lock: int = 21 * SECONDS_PER_DAY
    epoch: int = 28 * SECONDS_PER_DAY

    def __post_init__(self) -> None:
        if self.min_lock > self.max_lock:
            raise ValueError(f"min_lock ({self.min_lock}) exceeds max_lock ({self.max_lock})")
        if self.epoch <= 0:
            raise ValueError("epoch must be positive")

    @classmethod
    def from_days(cls, max_lock_days: int, min_lock_days: int, epoch_days: int) -> "LockParams":
        return cls(
            max_lock=int(max_lock_days) * SECONDS_PER_DAY,
            min_lock=int(min_lock_days) * SECONDS_PER_DAY,
            epoch=int(epoch_days) * SECONDS_PER_DAY,
        )
