"""
Events component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

# --- Event Kinds ---

INVITE_CREATED = "project.member.invite.created"
INVITE_UPDATED = "project.member.invite.updated"
MEMBER_ADDED = "project.member.added"


@dataclass(frozen=True)
class DomainEvent:
    kind: str
    payload: dict[str, Any]
    id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class SinkFailure:
    sink: str
    error: str
    attempts: int


@dataclass(frozen=True)
class PublishOutput:
    event: DomainEvent
    delivered: tuple[str, ...] = ()
    failed: tuple[SinkFailure, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class PublisherConfig:
    max_attempts: int = 3
    retry_delay_seconds: float = 0.0
