from __future__ import annotations

import json
import os
import logging

import redis
from pydantic import TypeAdapter

from .schema import AnyEvent, EventEnvelope
from .metrics import get_events_total


STREAM_EVENTS = os.getenv("EVENTS_STREAM", "stakeledger.events")
STREAM_DLQ = os.getenv("EVENTS_DLQ", "stakeledger.dlq")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

log = logging.getLogger("stakeledger.events")
_event_adapter = TypeAdapter(AnyEvent)


def _get_redis():
    return redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=0.5)


def envelope_line(env: EventEnvelope) -> str:
    return json.dumps({
        "schema_version": env.schema_version,
        "correlation_id": env.correlation_id,
        "sequence": env.sequence,
        "event": env.event.model_dump(),
    }, separators=(",", ":"))


def decode_line(line: str) -> EventEnvelope:
    """Rebuild a typed envelope from a published JSON line."""
    data = json.loads(line)
    event = _event_adapter.validate_python(data.pop("event"))
    return EventEnvelope(event=event, **data)


def publish(env: EventEnvelope) -> None:
    """Publish an event to Redis Streams and log a single-line JSON for Loki.

    Delivery is best-effort: the ledger has already committed by the time an
    event is published, so an unreachable Redis must not surface as a failure.
    """
    try:
        get_events_total().labels(env.event.event_type).inc()
    except Exception:
        pass

    line = envelope_line(env)
    if os.getenv("EVENTS_REDIS", "1") == "1":
        try:
            r = _get_redis()
            r.xadd(STREAM_EVENTS, {"json": line})
        except Exception:
            try:
                # best-effort DLQ
                r = _get_redis()
                r.xadd(STREAM_DLQ, {"json": line})
            except Exception:
                pass
    log.info(line)


def ensure_group(group: str) -> None:
    try:
        r = _get_redis()
        r.xgroup_create(name=STREAM_EVENTS, groupname=group, id="$", mkstream=True)
    except Exception as e:
        if "BUSYGROUP" in str(e):
            return
        raise


def consume(group: str, consumer: str, block_ms: int = 15000):
    """Generator yielding (id, json_str) from Redis Stream consumer group.

    Caller is responsible for acknowledging XACK.
    """
    r = _get_redis()
    ensure_group(group)
    while True:
        resp = r.xreadgroup(group, consumer, {STREAM_EVENTS: ">"}, count=100, block=block_ms)
        if not resp:
            yield None
            continue
        # resp is list[(stream, [(id, {field:value}), ...])]
        for _stream, entries in resp:
            for msg_id, fields in entries:
                yield (msg_id, fields.get("json", ""))
