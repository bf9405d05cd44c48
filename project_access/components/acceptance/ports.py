from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from project_access.components.events import PublishOutput
from project_access.domain.entities import (
    PlatformUser,
    Project,
    ProjectMember,
    ProjectMemberInvite,
)


class ProjectRepoPort(Protocol):
    def get_by_id(self, project_id: int) -> Project | None: ...


class MemberRepoPort(Protocol):
    def get_active(self, project_id: int, user_id: int) -> ProjectMember | None: ...


class InviteStorePort(Protocol):
    def get_by_id(self, invite_id: int) -> ProjectMemberInvite | None: ...

    def accept(
        self, invite_id: int, user_id: int, updated_by: int, updated_at: datetime
    ) -> tuple[ProjectMemberInvite, ProjectMember]:
        """
        Transition a pending invite to accepted and add the member atomically.
        Raises Conflict (invite_not_pending, already_member).
        """
        ...

    def reject(
        self, invite_id: int, updated_by: int, updated_at: datetime
    ) -> ProjectMemberInvite:
        """Raises Conflict (invite_not_pending) if the invite is not pending."""
        ...


class InviteSearchPort(Protocol):
    def find_invite(self, project_id: int, invite_id: int) -> ProjectMemberInvite | None: ...


class IdentityPort(Protocol):
    def resolve_emails_to_users(self, emails: Sequence[str]) -> list[PlatformUser]: ...


class PublisherPort(Protocol):
    def publish(self, kind: str, payload: dict[str, Any]) -> PublishOutput: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
