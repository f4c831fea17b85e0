import json
import logging

from prometheus_client import REGISTRY

from stakeledger.events import bus
from stakeledger.events.schema import Deposit, EventEnvelope, Yield

from conftest import DAY


def test_envelope_serializes_event_fields():
    evt = Deposit(ts=1, account="alice", amount=100, locked_until=2)
    env = EventEnvelope(correlation_id="default:alice", sequence=3, event=evt)
    data = json.loads(env.model_dump_json())
    assert data["event"]["event_type"] == "deposit"
    assert data["event"]["locked_until"] == 2


def test_publish_logs_single_json_line(caplog, monkeypatch):
    monkeypatch.setenv("EVENTS_REDIS", "0")
    caplog.set_level(logging.INFO, logger="stakeledger.events")
    before = REGISTRY.get_sample_value("events_total", {"type": "yield"}) or 0.0
    env = EventEnvelope(correlation_id="c1", event=Yield(ts=5, account="bob", yield_available=3, yield_locked=4))
    bus.publish(env)
    line = json.loads(caplog.records[-1].getMessage())
    assert line["event"]["yield_locked"] == 4
    assert line["correlation_id"] == "c1"
    after = REGISTRY.get_sample_value("events_total", {"type": "yield"})
    assert after == before + 1


def test_ledger_defaults_to_bus_publish(monkeypatch):
    from stakeledger.clock import ManualClock
    from stakeledger.custody.transfer import InMemoryCustody
    from stakeledger.ledger import StakingLedger

    published = []
    monkeypatch.setattr("stakeledger.ledger.ledger.publish_event", published.append)
    ledger = StakingLedger(InMemoryCustody({"alice": 100}), "operator", clock=ManualClock())
    ledger.stake("alice", 10, 30 * DAY)
    assert [env.event.event_type for env in published] == ["deposit"]
    assert ledger.events == published


def test_failing_publisher_does_not_undo_commit(h):
    def explode(env):
        raise RuntimeError("observer down")

    h.ledger.publisher = explode
    h.ledger.stake("alice", 10, 30 * DAY)
    assert h.ledger.get_position("alice").staked_amount == 10
    assert len(h.ledger.events) == 1


def test_decode_line_restores_event_type():
    env = EventEnvelope(correlation_id="c2", sequence=9, event=Deposit(ts=1, account="a", amount=5, locked_until=7))
    decoded = bus.decode_line(bus.envelope_line(env))
    assert isinstance(decoded.event, Deposit)
    assert decoded.sequence == 9
    assert decoded.event.locked_until == 7


def test_events_published_after_guard_release(h):
    seen = []

    def observe(env):
        seen.append((env.event.event_type, h.ledger.guard.entered))
        if env.event.event_type == "deposit":
            # callbacks into the ledger are allowed once the operation has finished
            h.ledger.add_rewards("operator", 1)

    h.ledger.publisher = observe
    h.ledger.stake("alice", 10, 30 * DAY)
    assert seen == [("deposit", False), ("rewards_funded", False)]
    assert h.ledger.available_rewards == 1
