import os

import pytest

# Keep unit tests off the network; bus.publish still logs and counts
os.environ.setdefault("EVENTS_REDIS", "0")

from stakeledger.clock import ManualClock
from stakeledger.custody.transfer import InMemoryCustody
from stakeledger.ledger import StakingLedger, SECONDS_PER_DAY

DAY = SECONDS_PER_DAY
OPERATOR = "operator"


class Harness:
    def __init__(self):
        self.clock = ManualClock(1_700_000_000)
        self.custody = InMemoryCustody({OPERATOR: 10_000, "alice": 1_000, "bob": 1_000, "carol": 1_000})
        self.published = []
        self.ledger = StakingLedger(
            self.custody, OPERATOR, clock=self.clock, publisher=self.published.append
        )

    def event_types(self):
        return [env.event.event_type for env in self.published]

    def fund(self, amount: int):
        return self.ledger.add_rewards(OPERATOR, amount)

    def assign(self, **yields):
        self.ledger.update_yields(OPERATOR, list(yields), list(yields.values()))

    def advance_days(self, days: int):
        self.clock.advance(days * DAY)


@pytest.fixture
def h():
    return Harness()
