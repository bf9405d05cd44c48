"""
Events component - At-least-once notification of invite and membership changes.

Every event is fanned out to each configured sink independently (the durable
event bus and the internal pub/sub channel). State mutations commit before
publishing; a failed publish is retried, then logged and reported, and is
never raised to the caller.

Invariants:
- Each sink is attempted up to max_attempts times per event
- Sinks do not succeed or fail atomically with each other
- publish_many preserves the given order
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .models import DomainEvent, PublisherConfig, PublishOutput, SinkFailure
from .ports import EventSinkPort

logger = logging.getLogger(__name__)


class EventPublisher:
    def __init__(
        self,
        sinks: Mapping[str, EventSinkPort],
        config: PublisherConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sinks = dict(sinks)
        self.config = config or PublisherConfig()
        self._sleep = sleep

    def publish(self, kind: str, payload: dict[str, Any]) -> PublishOutput:
        return self.publish_event(DomainEvent(kind=kind, payload=payload))

    def publish_event(self, event: DomainEvent) -> PublishOutput:
        delivered: list[str] = []
        failed: list[SinkFailure] = []

        for name, sink in self.sinks.items():
            failure = self._deliver(name, sink, event)
            if failure is None:
                delivered.append(name)
            else:
                failed.append(failure)

        return PublishOutput(event=event, delivered=tuple(delivered), failed=tuple(failed))

    def publish_many(self, events: Iterable[DomainEvent]) -> list[PublishOutput]:
        return [self.publish_event(event) for event in events]

    def _deliver(self, name: str, sink: EventSinkPort, event: DomainEvent) -> SinkFailure | None:
        attempts = max(1, self.config.max_attempts)
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                sink.publish(event.kind, event.payload)
                if attempt > 1:
                    logger.info(
                        "Event %s (%s) delivered to %s on attempt %d",
                        event.kind, event.id, name, attempt,
                    )
                return None
            except Exception as e:
                last_error = e
                logger.warning(
                    "Publishing %s (%s) to %s failed on attempt %d/%d: %s",
                    event.kind, event.id, name, attempt, attempts, e,
                )
                if attempt < attempts and self.config.retry_delay_seconds > 0:
                    self._sleep(self.config.retry_delay_seconds)

        logger.exception(
            "Giving up on %s (%s) for %s after %d attempts",
            event.kind, event.id, name, attempts,
            exc_info=last_error,
        )
        return SinkFailure(sink=name, error=str(last_error), attempts=attempts)
