"""
Acceptance component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from project_access.components.events import PublishOutput
from project_access.domain.entities import (
    Actor,
    InviteDecision,
    ProjectMember,
    ProjectMemberInvite,
)

# --- Input Models ---


@dataclass(frozen=True)
class GetInviteInput:
    project_id: int
    invite_id: int
    actor: Actor


@dataclass(frozen=True)
class RespondInviteInput:
    project_id: int
    invite_id: int
    actor: Actor
    decision: InviteDecision


# --- Output Models ---


@dataclass
class GetInviteOutput:
    invite: ProjectMemberInvite
    # Masked wire view of the invite
    response: dict[str, Any]
    source: str = "store"


@dataclass
class RespondInviteOutput:
    invite: ProjectMemberInvite
    response: dict[str, Any]
    member: ProjectMember | None = None
    events: list[PublishOutput] = field(default_factory=list)
