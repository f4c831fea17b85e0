from __future__ import annotations

from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, SerializeAsAny


# ---- Base + envelope ----

class BaseEvent(BaseModel):
    event_type: str
    ts: int
    ledger_id: str = "default"


class AccountEvent(BaseEvent):
    account: str


class EventEnvelope(BaseModel):
    schema_version: str = "v1"
    correlation_id: str
    sequence: int = 0
    event: SerializeAsAny[BaseEvent]


# ---- Position events ----

class Deposit(AccountEvent):
    event_type: Literal["deposit"] = "deposit"
    amount: int = Field(ge=0)
    locked_until: int = Field(ge=0)


class Add(AccountEvent):
    event_type: Literal["add"] = "add"
    amount: int = Field(ge=0)


class Claim(AccountEvent):
    event_type: Literal["claim"] = "claim"
    amount: int = Field(ge=0)


class Withdraw(AccountEvent):
    event_type: Literal["withdraw"] = "withdraw"
    amount: int = Field(ge=0)


class Yield(AccountEvent):
    event_type: Literal["yield"] = "yield"
    yield_available: int = Field(ge=0)
    yield_locked: int = Field(ge=0)


# ---- Reward pool events ----

class RewardsFunded(BaseEvent):
    event_type: Literal["rewards_funded"] = "rewards_funded"
    operator: str
    amount: int = Field(ge=0)
    available_rewards: int = Field(ge=0)


class RewardsSwept(BaseEvent):
    event_type: Literal["rewards_swept"] = "rewards_swept"
    operator: str
    amount: int = Field(ge=0)


AnyEvent = Annotated[
    Union[Deposit, Add, Claim, Withdraw, Yield, RewardsFunded, RewardsSwept],
    Field(discriminator="event_type"),
]
