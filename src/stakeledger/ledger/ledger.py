from __future__ import annotations

import functools
import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..clock import SystemClock
from ..custody.transfer import AssetTransfer
from ..errors import (
    AlreadyStaked,
    AmountZero,
    ArraysMismatch,
    CannotWithdrawYet,
    InvalidAmount,
    LedgerError,
    LockTooLong,
    LockTooShort,
    NoRewardsAvailable,
    NotEnoughRewardsAvailable,
    NotStaked,
    NothingToClaim,
    NothingToWithdraw,
)
from ..events.bus import publish as publish_event
from ..events.schema import (
    Add,
    BaseEvent,
    Claim,
    Deposit,
    EventEnvelope,
    RewardsFunded,
    RewardsSwept,
    Withdraw,
    Yield,
)
from ..gates.access import OperatorGate
from ..gates.reentrancy import ReentrancyGuard
from ..metrics.ledger import get_errors_total, get_operations_total, record_units, set_pool_gauges
from .model import LockParams, Position
from .store import write_state


logger = logging.getLogger(__name__)

Publisher = Callable[[EventEnvelope], None]


def _units(value, name: str = "amount") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative, got {value}")
    return value


def entrypoint(fn):
    """Run a public operation under the re-entrancy guard and count its outcome.

    Events staged by the operation are published after the guard is released.
    """
    op = fn.__name__

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            with self.guard.enter(op):
                try:
                    result = fn(self, *args, **kwargs)
                finally:
                    pending, self._outbox = self._outbox, []
        except LedgerError as e:
            get_errors_total().labels(op, e.code).inc()
            logger.warning(f"{op} rejected: {e.code}: {e}")
            raise
        get_operations_total().labels(op).inc()
        self._publish(pending)
        return result

    return wrapper


class StakingLedger:
    """Per-account stake and yield accounting over a shared reward pool.

    Operations stage changes on copies of the touched positions, request the
    custody transfer, and only then commit state and emit events. Any failure
    before the commit (validation, pool checks, a failed transfer) leaves the
    ledger exactly as it was.
    """

    def __init__(
        self,
        custody: AssetTransfer,
        operator: Union[OperatorGate, str],
        clock=None,
        params: Optional[LockParams] = None,
        publisher: Optional[Publisher] = None,
        ledger_id: str = "default",
        guard: Optional[ReentrancyGuard] = None,
    ):
        self.custody = custody
        self.gate = operator if isinstance(operator, OperatorGate) else OperatorGate(operator)
        self.clock = clock or SystemClock()
        self.params = params or LockParams()
        self.publisher = publisher
        self.ledger_id = ledger_id
        self.guard = guard or ReentrancyGuard()
        self.positions: Dict[str, Position] = {}
        self.available_rewards = 0
        self._total_staked = 0
        self.events: List[EventEnvelope] = []
        self._outbox: List[EventEnvelope] = []
        self._sequence = 0

    # ---- views ----

    def _get_pos(self, account: str) -> Position:
        return self.positions.get(account, Position())

    def get_position(self, account: str) -> Position:
        return replace(self._get_pos(account))

    def claimable(self, account: str) -> int:
        """Amount a claim would pay right now, before pool checks."""
        pos = self._get_pos(account)
        return pos.yield_available + self._vested(pos, self.clock.now())

    def total_staked(self) -> int:
        return self._total_staked

    def accounts(self) -> List[str]:
        return list(self.positions)

    # ---- staking ----

    @entrypoint
    def stake(self, account: str, amount: int, lock_duration: int) -> Position:
        amount = _units(amount)
        pos = self._stage(account)
        if amount == 0:
            raise AmountZero("stake amount must be positive")
        if pos.staked_amount != 0:
            raise AlreadyStaked(f"{account} already has {pos.staked_amount} staked")
        if isinstance(lock_duration, bool) or not isinstance(lock_duration, int):
            raise InvalidAmount(f"lock_duration must be an integer, got {lock_duration!r}")
        if lock_duration > self.params.max_lock:
            raise LockTooLong(f"lock {lock_duration}s exceeds max {self.params.max_lock}s")
        if lock_duration < self.params.min_lock:
            raise LockTooShort(f"lock {lock_duration}s below min {self.params.min_lock}s")
        now = self.clock.now()
        pos.staked_amount = amount
        pos.locked_until = now + lock_duration
        self.custody.transfer_in(account, amount)
        self._commit({account: pos}, staked_delta=amount)
        record_units("stake", amount)
        self._emit(Deposit(ts=now, ledger_id=self.ledger_id, account=account, amount=amount, locked_until=pos.locked_until))
        return replace(pos)

    @entrypoint
    def add_to_stake(self, account: str, amount: int) -> Position:
        amount = _units(amount)
        pos = self._stage(account)
        if pos.staked_amount == 0:
            raise NotStaked(f"{account} has no active stake")
        if amount == 0:
            raise AmountZero("added amount must be positive")
        # Yield for the added principal is assigned off-ledger at the next update_yields
        pos.staked_amount += amount
        self.custody.transfer_in(account, amount)
        self._commit({account: pos}, staked_delta=amount)
        record_units("add", amount)
        self._emit(Add(ts=self.clock.now(), ledger_id=self.ledger_id, account=account, amount=amount))
        return replace(pos)

    # ---- claiming ----

    def _vested(self, pos: Position, now: int) -> int:
        if now >= pos.last_yield_update + self.params.epoch:
            return pos.yield_locked
        return 0

    def _claim(self, pos: Position, now: int) -> int:
        vested = self._vested(pos, now)
        total = pos.yield_available + vested
        # Own balance before pool state; empty pool before short pool
        if total == 0:
            raise NothingToClaim("no available or vested yield")
        if self.available_rewards == 0:
            raise NoRewardsAvailable("reward pool is empty")
        if self.available_rewards < total:
            raise NotEnoughRewardsAvailable(
                f"claim of {total} exceeds reward pool of {self.available_rewards}"
            )
        if vested:
            pos.yield_locked = 0
        pos.yield_available = 0
        return total

    @entrypoint
    def claim_yield(self, account: str) -> int:
        now = self.clock.now()
        pos = self._stage(account)
        amount = self._claim(pos, now)
        self.custody.transfer_out(account, amount)
        self._commit({account: pos}, pool_delta=-amount)
        record_units("claim", amount)
        self._emit(Claim(ts=now, ledger_id=self.ledger_id, account=account, amount=amount))
        return amount

    # ---- withdrawal ----

    def _withdraw_principal(self, pos: Position, now: int) -> int:
        if pos.staked_amount == 0:
            raise NothingToWithdraw("no principal staked")
        if pos.locked_until > now:
            raise CannotWithdrawYet(f"locked until {pos.locked_until}, now {now}")
        amount = pos.staked_amount
        pos.staked_amount = 0
        pos.locked_until = 0
        return amount

    @entrypoint
    def withdraw(self, account: str) -> int:
        now = self.clock.now()
        pos = self._stage(account)
        amount = self._withdraw_principal(pos, now)
        self.custody.transfer_out(account, amount)
        self._commit({account: pos}, staked_delta=-amount)
        record_units("withdraw", amount)
        self._emit(Withdraw(ts=now, ledger_id=self.ledger_id, account=account, amount=amount))
        return amount

    @entrypoint
    def withdraw_and_claim(self, account: str) -> Tuple[int, int]:
        """Release principal and pay claimable yield in a single transfer.

        Both halves must succeed; a failing claim keeps the principal staked.
        """
        now = self.clock.now()
        pos = self._stage(account)
        principal = self._withdraw_principal(pos, now)
        claimed = self._claim(pos, now)
        self.custody.transfer_out(account, principal + claimed)
        self._commit({account: pos}, staked_delta=-principal, pool_delta=-claimed)
        record_units("withdraw", principal)
        record_units("claim", claimed)
        self._emit(
            Withdraw(ts=now, ledger_id=self.ledger_id, account=account, amount=principal),
            Claim(ts=now, ledger_id=self.ledger_id, account=account, amount=claimed),
        )
        return principal, claimed

    # ---- operator ----

    @entrypoint
    def update_yields(self, caller: str, accounts: Sequence[str], new_yield_amounts: Sequence[int]) -> None:
        self.gate.require_operator(caller)
        accounts = list(accounts)
        amounts = list(new_yield_amounts)
        if len(accounts) != len(amounts):
            raise ArraysMismatch(f"{len(accounts)} accounts vs {len(amounts)} amounts")
        amounts = [_units(a, "yield") for a in amounts]
        now = self.clock.now()
        staged: Dict[str, Position] = {}
        events: List[BaseEvent] = []
        for account, new_amount in zip(accounts, amounts):
            if account not in staged:
                staged[account] = self._stage(account)
            pos = staged[account]
            # A fresh assignment vests the previous round regardless of epoch timing
            pos.yield_available += pos.yield_locked
            pos.yield_locked = new_amount
            pos.last_yield_update = now
            events.append(Yield(
                ts=now,
                ledger_id=self.ledger_id,
                account=account,
                yield_available=pos.yield_available,
                yield_locked=pos.yield_locked,
            ))
        self._commit(staged)
        self._emit(*events)

    @entrypoint
    def add_rewards(self, caller: str, amount: int) -> int:
        self.gate.require_operator(caller)
        amount = _units(amount)
        self.custody.transfer_in(caller, amount)
        self._commit({}, pool_delta=amount)
        record_units("fund", amount)
        self._emit(RewardsFunded(
            ts=self.clock.now(),
            ledger_id=self.ledger_id,
            operator=caller,
            amount=amount,
            available_rewards=self.available_rewards,
        ))
        return self.available_rewards

    @entrypoint
    def withdraw_rewards(self, caller: str) -> int:
        self.gate.require_operator(caller)
        amount = self.available_rewards
        if amount == 0:
            logger.info("withdraw_rewards: reward pool already empty")
            return 0
        self.custody.transfer_out(caller, amount)
        self._commit({}, pool_delta=-amount)
        record_units("sweep", amount)
        self._emit(RewardsSwept(ts=self.clock.now(), ledger_id=self.ledger_id, operator=caller, amount=amount))
        return amount

    # ---- persistence ----

    @entrypoint
    def restore(self, positions: Dict[str, Position], available_rewards: int) -> None:
        """Load persisted state into an empty ledger."""
        if self.positions or self.available_rewards:
            raise RuntimeError("restore requires an empty ledger")
        total = 0
        loaded: Dict[str, Position] = {}
        for account, pos in positions.items():
            for name in ("staked_amount", "locked_until", "yield_available", "yield_locked", "last_yield_update"):
                _units(getattr(pos, name), name)
            if (pos.staked_amount == 0) != (pos.locked_until == 0):
                raise ValueError(f"{account}: staked_amount and locked_until must be zero together")
            loaded[account] = replace(pos)
            total += pos.staked_amount
        self.positions = loaded
        self.available_rewards = _units(available_rewards, "available_rewards")
        self._total_staked = total
        set_pool_gauges(self.available_rewards, self._total_staked)
        logger.info(f"restored {len(loaded)} positions, pool={self.available_rewards}")

    def write_parquet(self, base_dir: str = "data") -> None:
        with self.guard.enter("write_parquet"):
            write_state(self.positions, self.available_rewards, base_dir)

    # ---- internals ----

    def _stage(self, account: str) -> Position:
        return replace(self._get_pos(account))

    def _commit(self, staged: Dict[str, Position], staked_delta: int = 0, pool_delta: int = 0) -> None:
        pool = self.available_rewards + pool_delta
        if pool < 0:
            raise RuntimeError(f"reward pool would go negative ({pool})")
        self.positions.update(staged)
        self._total_staked += staked_delta
        self.available_rewards = pool
        set_pool_gauges(self.available_rewards, self._total_staked)

    def _emit(self, *events: BaseEvent) -> None:
        for evt in events:
            self._sequence += 1
            subject = getattr(evt, "account", None) or getattr(evt, "operator", "pool")
            env = EventEnvelope(
                correlation_id=f"{self.ledger_id}:{subject}",
                sequence=self._sequence,
                event=evt,
            )
            self.events.append(env)
            self._outbox.append(env)

    def _publish(self, envelopes: List[EventEnvelope]) -> None:
        publish = self.publisher or publish_event
        for env in envelopes:
            try:
                publish(env)
            except Exception:
                # committed already; publishing is best-effort
                logger.exception(f"failed to publish {env.event.event_type} event")
