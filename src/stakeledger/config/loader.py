"""
Configuration loader for stakeledger.

What it does:
- Reads static settings from `config/config.yaml`.
- Resolves the operator identity, letting `STAKELEDGER_OPERATOR` override the
  YAML value so deployments do not have to edit the file.
- Validates the resulting configuration using Pydantic models.

Where it is used:
- Called by `stakeledger.main` to build the ledger, its custody account and
  lock parameters.
"""

import os
import yaml
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from stakeledger.ledger.model import LockParams


class LockConfig(BaseModel):
    """Lock and vesting windows in days."""
    max_lock_days: int = Field(default=365, gt=0)
    min_lock_days: int = Field(default=21, ge=0)
    epoch_days: int = Field(default=28, gt=0)

    @model_validator(mode="after")
    def min_below_max(self):
        if self.min_lock_days > self.max_lock_days:
            raise ValueError("min_lock_days must not exceed max_lock_days")
        return self


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    ledger_id: str = "default"
    operator: str
    custody_account: str = "ledger"
    lock: LockConfig = LockConfig()
    metrics_port: int = 8000
    state_dir: str = "data"

    @field_validator("operator")
    @classmethod
    def not_empty(cls, v, info):
        if not v:
            raise ValueError(f"Missing required identity: {info.field_name}")
        return v

    def lock_params(self) -> LockParams:
        return LockParams.from_days(
            self.lock.max_lock_days, self.lock.min_lock_days, self.lock.epoch_days
        )


def load_settings(path: str = "config/config.yaml", overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """Load YAML config, apply env/explicit overrides, and return Settings."""
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    operator = os.getenv("STAKELEDGER_OPERATOR", "")
    if operator:
        config["operator"] = operator
    config.update(overrides or {})
    return Settings(**config)
