"""Normalization events and StatsD counters."""

from __future__ import annotations

import json
import logging
import socket
import threading
from datetime import datetime, timezone
from typing import Any, Mapping

from metagraph.settings import Settings, get_settings

_LOGGER = logging.getLogger("metagraph.observability")
_STATSD_LOCK = threading.Lock()
_SHARED_STATSD: "StatsdClient | None" = None


class StatsdClient:
    """Fire-and-forget StatsD counter client over UDP."""

    def __init__(self, host: str, port: int, prefix: str = "") -> None:
        self.address = (host, port)
        self.prefix = prefix
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def format_counter(self, metric: str, value: float, tags: Mapping[str, str] | None = None) -> str:
        """Render a DogStatsD-style counter line."""

        name = f"{self.prefix}.{metric}" if self.prefix else metric
        count = f"{value:.6f}".rstrip("0").rstrip(".") or "0"
        line = f"{name}:{count}|c"
        if tags:
            line += "|#" + ",".join(f"{key}:{val}" for key, val in sorted(tags.items()))
        return line

    def increment(self, metric: str, value: float = 1.0, tags: Mapping[str, str] | None = None) -> None:
        try:
            self._socket.sendto(self.format_counter(metric, value, tags).encode("utf-8"), self.address)
        except OSError:  # pragma: no cover - depends on the network
            _LOGGER.debug("StatsD send failed for metric %s", metric, exc_info=True)


class Observability:
    """Log normalization events and count documents per category and status."""

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        statsd: StatsdClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.component = component or "core"
        self.service_name = settings.observability.service_name
        self._structured_logging = bool(settings.observability.structured_logging)
        self._statsd = statsd
        self._logger = logger or _LOGGER

    def emit_event(self, event: str, **fields: Any) -> None:
        """Log ``event`` at INFO, as a JSON line when structured logging is on."""

        payload = {
            "event": event,
            "service": self.service_name,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        if self._structured_logging:
            self._logger.info(json.dumps(payload, default=str))
        else:
            self._logger.info("%s | %s", event, payload)

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, Any] | None = None) -> None:
        if self._statsd is None:
            return
        clean_tags = {str(key): str(val) for key, val in (tags or {}).items() if val is not None}
        self._statsd.increment(metric, value=value, tags=clean_tags or None)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    """Return an :class:`Observability` sharing one StatsD client per process."""

    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_statsd(resolved))


def reset_observability_cache() -> None:
    """Forget the shared StatsD client (used in tests)."""

    global _SHARED_STATSD
    with _STATSD_LOCK:
        _SHARED_STATSD = None


def _shared_statsd(settings: Settings) -> StatsdClient | None:
    global _SHARED_STATSD
    with _STATSD_LOCK:
        if _SHARED_STATSD is None and settings.observability.statsd_host:
            _SHARED_STATSD = StatsdClient(
                settings.observability.statsd_host,
                settings.observability.statsd_port,
                settings.observability.statsd_prefix,
            )
        return _SHARED_STATSD


__all__ = ["Observability", "StatsdClient", "get_observability", "reset_observability_cache"]
