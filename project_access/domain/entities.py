from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from project_access.domain.roles import PlatformRole, ProjectRole

# --- Enums / Literals ---
ProjectStatus = Literal[
    "draft", "in_review", "reviewed", "active", "paused", "completed", "cancelled"
]
InviteStatus = Literal["pending", "accepted", "rejected"]
InviteDecision = Literal["accepted", "rejected"]

# pending -> accepted | rejected; both terminal
VALID_INVITE_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"accepted", "rejected"},
    "accepted": set(),
    "rejected": set(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in VALID_INVITE_TRANSITIONS.get(from_status, set())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_email(email: str) -> str:
    """Case-insensitive comparison key. Dots are significant, including for gmail."""
    return email.strip().lower()


def identity_key(user_id: int | None, email: str | None) -> str:
    if user_id is not None:
        return f"user:{user_id}"
    if email:
        return f"email:{normalize_email(email)}"
    raise ValueError("identity requires a user id or an email")


# --- Identity ---

class PlatformUser(BaseModel):
    id: int
    email: str
    handle: str | None = None


class Actor(BaseModel):
    user_id: int
    email: str | None = None
    platform_roles: list[PlatformRole] = Field(default_factory=list)

    def owns(self, user_id: int | None, email: str | None) -> bool:
        if user_id is not None and user_id == self.user_id:
            return True
        if email and self.email:
            return normalize_email(email) == normalize_email(self.email)
        return False


# --- Projects ---

class Project(BaseModel):
    id: int
    name: str
    status: ProjectStatus = "draft"
    template_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    deleted_at: datetime | None = None


class ProjectMember(BaseModel):
    id: int | None = None
    project_id: int
    user_id: int
    role: ProjectRole
    is_primary: bool = False
    created_by: int | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    deleted_at: datetime | None = None


class ProjectMemberInvite(BaseModel):
    id: int | None = None
    project_id: int
    user_id: int | None = None
    email: str | None = None
    role: ProjectRole
    status: InviteStatus = "pending"
    created_by: int | None = None
    updated_by: int | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _require_identity(self) -> "ProjectMemberInvite":
        if self.user_id is None and not self.email:
            raise ValueError("invite requires user_id or email")
        return self

    @property
    def identity_key(self) -> str:
        return identity_key(self.user_id, self.email)

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    def matches_email(self, email: str) -> bool:
        if not self.email:
            return False
        return normalize_email(self.email) == normalize_email(email)
