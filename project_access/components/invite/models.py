"""
Invite component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from project_access.components.events import PublishOutput
from project_access.domain.entities import Actor, ProjectMemberInvite

# --- Failure reasons ---

ALREADY_MEMBER = "already_member"
ALREADY_INVITED = "already_invited"
ROLE_NOT_ALLOWED = "role_not_allowed"

BatchOutcome = Literal["created", "partially_created", "failed"]


# --- Input Models ---


@dataclass(frozen=True)
class CreateInvitesInput:
    project_id: int
    role: str
    actor: Actor
    user_ids: tuple[int, ...] = ()
    emails: tuple[str, ...] = ()


# --- Intermediate Models ---


@dataclass(frozen=True)
class InviteCandidate:
    """An identity that survived duplicate detection."""

    user_id: int | None = None
    email: str | None = None
    # True when the identity was submitted as an email
    by_email: bool = False


@dataclass(frozen=True)
class InviteFailure:
    """Per-identity failure inside a batch."""

    code: str
    message: str
    user_id: int | None = None
    email: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.user_id is not None:
            body["userId"] = self.user_id
        if self.email is not None:
            body["email"] = self.email
        body["code"] = self.code
        body["message"] = self.message
        return body


@dataclass(frozen=True)
class PartitionResult:
    candidates: list[InviteCandidate] = field(default_factory=list)
    failed: list[InviteFailure] = field(default_factory=list)


# --- Output Models ---


@dataclass
class CreateInvitesOutput:
    invites: list[ProjectMemberInvite]
    failed: list[InviteFailure]
    # Masked wire payload: {"success": [...], "failed": [...]}
    response: dict[str, Any]
    events: list[PublishOutput] = field(default_factory=list)

    @property
    def outcome(self) -> BatchOutcome:
        if not self.failed:
            return "created"
        if self.invites:
            return "partially_created"
        return "failed"


def invite_view(invite: ProjectMemberInvite) -> dict[str, Any]:
    """Wire representation of an invite (unmasked)."""
    return {
        "id": invite.id,
        "projectId": invite.project_id,
        "userId": invite.user_id,
        "email": invite.email,
        "role": invite.role,
        "status": invite.status,
        "createdBy": invite.created_by,
        "createdAt": invite.created_at.isoformat(),
    }
