from typing import Any, Protocol


class EventSinkPort(Protocol):
    """A downstream consumer: the durable event bus or the pub/sub channel."""

    def publish(self, kind: str, payload: dict[str, Any]) -> None:
        """Deliver one event. Raises on failure."""
        ...
