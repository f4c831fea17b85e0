"""Scripted replay of ledger operations against a manual clock.

A script is a list of steps, each a mapping with an ``op`` key naming a ledger
operation plus its keyword arguments. The ``advance`` pseudo-op moves the clock
by ``days`` and/or ``seconds``. Ledger rejections are recorded per step and do
not stop the replay; an unknown op does.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List

from .clock import ManualClock
from .errors import LedgerError
from .ledger.ledger import StakingLedger
from .ledger.model import SECONDS_PER_DAY


logger = logging.getLogger(__name__)


def _duration(step: Dict[str, Any], prefix: str = "") -> int:
    days = int(step.get(f"{prefix}days", 0))
    seconds = int(step.get(f"{prefix}seconds", 0))
    return days * SECONDS_PER_DAY + seconds


def _dispatch(ledger: StakingLedger, clock: ManualClock, op: str, step: Dict[str, Any]) -> Any:
    if op == "advance":
        return clock.advance(_duration(step))
    if op == "stake":
        return ledger.stake(step["account"], step["amount"], _duration(step, "lock_"))
    if op == "add_to_stake":
        return ledger.add_to_stake(step["account"], step["amount"])
    if op in ("claim_yield", "withdraw", "withdraw_and_claim"):
        return getattr(ledger, op)(step["account"])
    if op == "update_yields":
        return ledger.update_yields(step["caller"], step["accounts"], step["amounts"])
    if op == "add_rewards":
        return ledger.add_rewards(step["caller"], step["amount"])
    if op == "withdraw_rewards":
        return ledger.withdraw_rewards(step["caller"])
    raise ValueError(f"unknown replay op: {op!r}")


def run_steps(ledger: StakingLedger, clock: ManualClock, steps: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    for i, raw in enumerate(steps):
        step = dict(raw)
        op = str(step.pop("op"))
        try:
            value = _dispatch(ledger, clock, op, step)
        except LedgerError as e:
            logger.info(f"step {i} {op}: {e.code}")
            results.append({"step": i, "op": op, "status": e.code, "result": None})
            continue
        if is_dataclass(value):
            value = asdict(value)
        results.append({"step": i, "op": op, "status": "ok", "result": value})
    return results
