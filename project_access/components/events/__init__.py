"""
Events component - Event fan-out to the event bus and pub/sub channel.
"""

from .component import EventPublisher
from .models import (
    INVITE_CREATED,
    INVITE_UPDATED,
    MEMBER_ADDED,
    DomainEvent,
    PublisherConfig,
    PublishOutput,
    SinkFailure,
)
from .ports import EventSinkPort

__all__ = [
    # Entry point
    "EventPublisher",
    # Event kinds
    "INVITE_CREATED",
    "INVITE_UPDATED",
    "MEMBER_ADDED",
    # Models
    "DomainEvent",
    "PublisherConfig",
    "PublishOutput",
    "SinkFailure",
    # Ports
    "EventSinkPort",
]
