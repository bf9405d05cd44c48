"""
Dev event sinks.

Log events instead of shipping them to the durable bus, and dispatch the
pub/sub channel in-process. Used for local development and testing.

Key behaviors:
- Records every published event in memory for test assertions
- Never logs payload values that may hold personal data
- In-process subscribers are called synchronously, in subscription order
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[str, dict[str, Any]], None]


@dataclass
class PublishedEvent:
    """Record of a published event for test assertions."""

    kind: str
    payload: dict[str, Any]
    published_at: datetime


def _describe(kind: str, payload: dict[str, Any]) -> str:
    parts = [f"kind={kind}"]
    for key in ("projectId", "inviteId", "memberId"):
        if key in payload:
            parts.append(f"{key}={payload[key]}")
    return ", ".join(parts)


@dataclass
class LoggingEventBus:
    """Event bus stand-in that logs instead of delivering."""

    events: list[PublishedEvent] = field(default_factory=list)
    log_level: int = logging.INFO

    def publish(self, kind: str, payload: dict[str, Any]) -> None:
        self.events.append(PublishedEvent(kind, dict(payload), datetime.now(UTC)))
        logger.log(self.log_level, "EVENT BUS (dev): %s", _describe(kind, payload))

    # --- Test Helper Methods ---

    def of_kind(self, kind: str) -> list[PublishedEvent]:
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()


@dataclass
class InMemoryPubSub:
    """In-process pub/sub channel."""

    events: list[PublishedEvent] = field(default_factory=list)
    _handlers: dict[str, list[Handler]] = field(default_factory=lambda: defaultdict(list))

    def subscribe(self, kind: str, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def publish(self, kind: str, payload: dict[str, Any]) -> None:
        self.events.append(PublishedEvent(kind, dict(payload), datetime.now(UTC)))
        logger.debug("PUBSUB: %s", _describe(kind, payload))
        for handler in self._handlers.get(kind, []):
            handler(kind, payload)

    # --- Test Helper Methods ---

    def of_kind(self, kind: str) -> list[PublishedEvent]:
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()
