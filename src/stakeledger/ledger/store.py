"""Parquet snapshots of ledger state.

Only the position mapping and the reward pool counter are persisted. Amounts
are written as decimal strings so integers wider than int64 survive the trip.
"""
from __future__ import annotations

import os
from dataclasses import fields
from typing import Dict, Tuple

import pandas as pd

from .model import Position

POSITION_FIELDS = [f.name for f in fields(Position)]


def write_state(positions: Dict[str, Position], available_rewards: int, base_dir: str = "data") -> None:
    os.makedirs(base_dir, exist_ok=True)
    rows = [
        {"account": account, **{name: str(getattr(pos, name)) for name in POSITION_FIELDS}}
        for account, pos in positions.items()
    ]
    positions_df = pd.DataFrame(rows, columns=["account", *POSITION_FIELDS])
    pool_df = pd.DataFrame([{"available_rewards": str(int(available_rewards))}])
    positions_df.to_parquet(os.path.join(base_dir, "positions.parquet"), index=False)
    pool_df.to_parquet(os.path.join(base_dir, "pool.parquet"), index=False)


def read_state(base_dir: str = "data") -> Tuple[Dict[str, Position], int]:
    positions_path = os.path.join(base_dir, "positions.parquet")
    pool_path = os.path.join(base_dir, "pool.parquet")
    if not os.path.exists(pool_path):
        return {}, 0
    positions: Dict[str, Position] = {}
    if os.path.exists(positions_path):
        df = pd.read_parquet(positions_path)
        for rec in df.to_dict(orient="records"):
            positions[str(rec["account"])] = Position(**{name: int(rec[name]) for name in POSITION_FIELDS})
    pool_df = pd.read_parquet(pool_path)
    available_rewards = int(pool_df["available_rewards"].iloc[0]) if len(pool_df) else 0
    return positions, available_rewards
