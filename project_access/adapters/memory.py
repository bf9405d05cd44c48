"""
In-memory access store.

Keeps projects, members and invites in process memory behind one lock.
Mirrors the SQLite adapter's guarantees: one pending invite per identity
per project, one active membership per user per project, and conditional
invite status changes. Used for local development and tests.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from project_access.domain.entities import (
    Project,
    ProjectMember,
    ProjectMemberInvite,
)
from project_access.domain.errors import Conflict


@dataclass
class MemoryState:
    projects: dict[int, Project] = field(default_factory=dict)
    members: dict[int, ProjectMember] = field(default_factory=dict)
    invites: dict[int, ProjectMemberInvite] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)
    next_member_id: int = 1
    next_invite_id: int = 1


class InMemoryProjectRepo:
    def __init__(self, state: MemoryState):
        self._state = state

    def save(self, project: Project) -> Project:
        with self._state.lock:
            self._state.projects[project.id] = project
        return project

    def get_by_id(self, project_id: int) -> Project | None:
        return self._state.projects.get(project_id)


class InMemoryMemberRepo:
    def __init__(self, state: MemoryState):
        self._state = state

    def _active(self, project_id: int) -> list[ProjectMember]:
        return [
            m
            for m in self._state.members.values()
            if m.project_id == project_id and m.deleted_at is None
        ]

    def add(self, member: ProjectMember) -> ProjectMember:
        with self._state.lock:
            if any(m.user_id == member.user_id for m in self._active(member.project_id)):
                raise Conflict(
                    f"User {member.user_id} is already a member of project {member.project_id}",
                    code="already_member",
                )
            stored = member.model_copy(update={"id": self._state.next_member_id})
            self._state.members[stored.id] = stored  # type: ignore[index]
            self._state.next_member_id += 1
            return stored

    def get_active(self, project_id: int, user_id: int) -> ProjectMember | None:
        with self._state.lock:
            for m in self._active(project_id):
                if m.user_id == user_id:
                    return m
        return None

    def list_active(self, project_id: int) -> list[ProjectMember]:
        with self._state.lock:
            return sorted(self._active(project_id), key=lambda m: m.id or 0)


class InMemoryInviteRepo:
    def __init__(self, state: MemoryState, members: InMemoryMemberRepo):
        self._state = state
        self._members = members

    def create(self, invite: ProjectMemberInvite) -> ProjectMemberInvite:
        with self._state.lock:
            key = invite.identity_key
            for existing in self._state.invites.values():
                if (
                    existing.project_id == invite.project_id
                    and existing.is_pending
                    and existing.identity_key == key
                ):
                    raise Conflict(
                        "A pending invite already exists for this identity",
                        code="already_invited",
                    )
            stored = invite.model_copy(update={"id": self._state.next_invite_id})
            self._state.invites[stored.id] = stored  # type: ignore[index]
            self._state.next_invite_id += 1
            return stored

    def get_by_id(self, invite_id: int) -> ProjectMemberInvite | None:
        return self._state.invites.get(invite_id)

    def list_pending(self, project_id: int) -> list[ProjectMemberInvite]:
        with self._state.lock:
            return [
                i
                for i in sorted(self._state.invites.values(), key=lambda i: i.id or 0)
                if i.project_id == project_id and i.is_pending
            ]

    def _transition(
        self, invite_id: int, status: str, updated_by: int, updated_at: datetime
    ) -> ProjectMemberInvite:
        current = self._state.invites.get(invite_id)
        if current is None or not current.is_pending:
            raise Conflict("Invite is no longer pending", code="invite_not_pending")
        updated = current.model_copy(
            update={"status": status, "updated_by": updated_by, "updated_at": updated_at}
        )
        self._state.invites[invite_id] = updated
        return updated

    def accept(
        self,
        invite_id: int,
        user_id: int,
        updated_by: int,
        updated_at: datetime,
    ) -> tuple[ProjectMemberInvite, ProjectMember]:
        with self._state.lock:
            current = self._state.invites.get(invite_id)
            if current is None or not current.is_pending:
                raise Conflict("Invite is no longer pending", code="invite_not_pending")
            if self._members.get_active(current.project_id, user_id) is not None:
                raise Conflict("User is already a member of the project", code="already_member")

            holders = [
                m for m in self._members.list_active(current.project_id) if m.role == current.role
            ]
            invite = self._transition(invite_id, "accepted", updated_by, updated_at)
            member = self._members.add(
                ProjectMember(
                    project_id=invite.project_id,
                    user_id=user_id,
                    role=invite.role,
                    is_primary=not holders,
                    created_by=updated_by,
                    created_at=updated_at,
                )
            )
            return invite, member

    def reject(
        self, invite_id: int, updated_by: int, updated_at: datetime
    ) -> ProjectMemberInvite:
        with self._state.lock:
            return self._transition(invite_id, "rejected", updated_by, updated_at)


class InMemoryAccessStore:
    """Bundle of repositories sharing one in-memory state."""

    def __init__(self) -> None:
        self.state = MemoryState()
        self.projects = InMemoryProjectRepo(self.state)
        self.members = InMemoryMemberRepo(self.state)
        self.invites = InMemoryInviteRepo(self.state, self.members)

    # --- Test Helper Methods ---

    def add_project(self, project_id: int, template_id: str | None = None, **kwargs) -> Project:
        return self.projects.save(
            Project(id=project_id, name=kwargs.pop("name", f"Project {project_id}"),
                    template_id=template_id, **kwargs)
        )

    def add_member(self, project_id: int, user_id: int, role: str, **kwargs) -> ProjectMember:
        return self.members.add(
            ProjectMember(project_id=project_id, user_id=user_id, role=role, **kwargs)  # type: ignore[arg-type]
        )

    def all_invites(self) -> list[ProjectMemberInvite]:
        return sorted(self.state.invites.values(), key=lambda i: i.id or 0)
