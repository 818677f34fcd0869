"""Unit tests for normalization events and StatsD counters."""

from __future__ import annotations

import json
import logging

from metagraph import observability as obs
from metagraph.settings import Settings


class _RecordingStatsd:
    def __init__(self) -> None:
        self.calls = []

    def increment(self, metric, value=1.0, tags=None):
        self.calls.append((metric, value, tags))


def test_event_payload_carries_service_name(caplog):
    settings = Settings(observability={"structured_logging": True, "service_name": "graph-indexer"})
    caplog.set_level(logging.INFO, logger="metagraph.observability")

    obs.Observability(settings=settings, component="normalization").emit_event("metadata.normalized", category="user")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["service"] == "graph-indexer"
    assert payload["component"] == "normalization"
    assert payload["category"] == "user"


def test_increment_drops_empty_tags_and_stringifies_values():
    statsd = _RecordingStatsd()
    observability = obs.Observability(settings=Settings(), statsd=statsd)

    observability.increment("metadata.documents", tags={"category": "user", "attempt": 2, "skip": None})
    observability.increment("metadata.documents", tags={"skip": None})

    assert statsd.calls == [
        ("metadata.documents", 1.0, {"category": "user", "attempt": "2"}),
        ("metadata.documents", 1.0, None),
    ]


def test_counter_line_format():
    client = obs.StatsdClient("127.0.0.1", 8125, "metagraph")

    assert client.format_counter("metadata.documents", 1.0) == "metagraph.metadata.documents:1|c"
    assert (
        client.format_counter("metadata.documents", 2.5, {"status": "rejected", "category": "user"})
        == "metagraph.metadata.documents:2.5|c|#category:user,status:rejected"
    )


def test_statsd_client_is_shared_until_reset():
    obs.reset_observability_cache()
    settings = Settings(observability={"statsd_host": "127.0.0.1"})

    first = obs.get_observability(settings=settings)
    second = obs.get_observability(settings=settings)
    assert first._statsd is second._statsd
    assert first._statsd is not None

    obs.reset_observability_cache()
    assert obs.get_observability(settings=Settings())._statsd is None
