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
    def list_active(self, project_id: int) -> list[ProjectMember]: ...


class InviteRepoPort(Protocol):
    def list_pending(self, project_id: int) -> list[ProjectMemberInvite]: ...

    def create(self, invite: ProjectMemberInvite) -> ProjectMemberInvite:
        """
        Insert a pending invite and return it with its id.
        Raises Conflict if a pending invite with the same identity exists.
        """
        ...


class IdentityPort(Protocol):
    def resolve_emails_to_users(self, emails: Sequence[str]) -> list[PlatformUser]: ...
    def get_platform_roles(self, user_id: int) -> list[str]: ...


class PublisherPort(Protocol):
    def publish(self, kind: str, payload: dict[str, Any]) -> PublishOutput: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
