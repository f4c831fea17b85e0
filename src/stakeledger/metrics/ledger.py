from __future__ import annotations

from typing import Optional
import os
from prometheus_client import Counter, Gauge, REGISTRY

_operations_total: Optional[Counter] = None
_errors_total: Optional[Counter] = None
_units_total: Optional[Counter] = None
_reward_pool_gauge: Optional[Gauge] = None
_total_staked_gauge: Optional[Gauge] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None


def _existing(name: str):
    # Collectors survive module reloads in the default REGISTRY; reuse them by name
    coll = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
    if coll is not None:
        return coll
    for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):  # type: ignore[attr-defined]
        if getattr(coll, "_name", None) == name:
            return coll
    return None


def _safe_counter(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        coll = _existing(name)
        return coll if coll is not None else _NoOp()


def _safe_gauge(name: str, doc: str):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Gauge(name, doc)
    except ValueError:
        coll = _existing(name)
        return coll if coll is not None else _NoOp()


def get_operations_total():
    global _operations_total
    if _operations_total is None:
        _operations_total = _safe_counter("ledger_operations_total", "Ledger operations completed", ["op"])
    return _operations_total


def get_errors_total():
    global _errors_total
    if _errors_total is None:
        _errors_total = _safe_counter("ledger_errors_total", "Ledger operations rejected", ["op", "reason"])
    return _errors_total


def get_units_total():
    """Counter: asset units moved, labeled by flow (stake|add|claim|withdraw|fund|sweep)."""
    global _units_total
    if _units_total is None:
        _units_total = _safe_counter("ledger_units_total", "Asset units moved through the ledger", ["flow"])
    return _units_total


def get_reward_pool_gauge():
    global _reward_pool_gauge
    if _reward_pool_gauge is None:
        _reward_pool_gauge = _safe_gauge("reward_pool_available", "Reward units available for claims")
    return _reward_pool_gauge


def get_total_staked_gauge():
    global _total_staked_gauge
    if _total_staked_gauge is None:
        _total_staked_gauge = _safe_gauge("ledger_total_staked", "Principal units currently staked")
    return _total_staked_gauge


def record_units(flow: str, amount: int) -> None:
    if amount <= 0:
        return
    try:
        get_units_total().labels(flow).inc(amount)
    except Exception:
        pass


def set_pool_gauges(available_rewards: int, total_staked: int) -> None:
    try:
        get_reward_pool_gauge().set(float(available_rewards))
        get_total_staked_gauge().set(float(total_staked))
    except Exception:
        # Metrics are optional in constrained environments
        pass
