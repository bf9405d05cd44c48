"""
Acceptance component - Invite lookup and accept/reject.

Invariants:
- The store is authoritative; the search index is only a read shortcut
- An invite leaves "pending" at most once (conditional store update)
- Accepting adds exactly one active membership in the same transaction
- Non-privileged actors only see or answer invites addressed to them
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, get_args

from project_access.components.events import INVITE_UPDATED, MEMBER_ADDED, PublishOutput
from project_access.components.invite import invite_view
from project_access.components.masking import Viewer, mask_payload
from project_access.domain.entities import (
    Actor,
    InviteDecision,
    Project,
    ProjectMember,
    ProjectMemberInvite,
    can_transition,
    normalize_email,
)
from project_access.domain.errors import (
    AccessError,
    Conflict,
    DependencyUnavailable,
    NotFound,
    PolicyDenied,
    ValidationError,
)
from project_access.domain.policy import INVITE_GET_ALL, INVITE_UPDATE_ALL, PolicyEngine

from .models import (
    GetInviteInput,
    GetInviteOutput,
    RespondInviteInput,
    RespondInviteOutput,
)
from .ports import (
    IdentityPort,
    InviteSearchPort,
    InviteStorePort,
    MemberRepoPort,
    ProjectRepoPort,
    PublisherPort,
    TimePort,
)

logger = logging.getLogger(__name__)


class InviteAcceptance:
    def __init__(
        self,
        projects: ProjectRepoPort,
        members: MemberRepoPort,
        invites: InviteStorePort,
        identity: IdentityPort,
        policy: PolicyEngine,
        publisher: PublisherPort,
        search: InviteSearchPort | None = None,
        time: TimePort | None = None,
    ):
        self.projects = projects
        self.members = members
        self.invites = invites
        self.identity = identity
        self.policy = policy
        self.publisher = publisher
        self.search = search
        self.time = time
        self.rules = policy.rules

    def _now(self) -> datetime:
        return self.time.now_utc() if self.time else datetime.now(UTC)

    def _get_project(self, project_id: int) -> Project:
        project = self.projects.get_by_id(project_id)
        if project is None or project.deleted_at is not None:
            raise NotFound(f"Project {project_id} not found", code="project_not_found")
        return project

    def _lookup(self, project_id: int, invite_id: int) -> tuple[ProjectMemberInvite, str]:
        if self.search is not None:
            try:
                hit = self.search.find_invite(project_id, invite_id)
            except Exception:
                logger.warning(
                    "Search index lookup failed for invite %s, falling back to store",
                    invite_id,
                    exc_info=True,
                )
                hit = None
            if hit is not None:
                return hit, "index"

        try:
            invite = self.invites.get_by_id(invite_id)
        except AccessError:
            raise
        except Exception as e:
            raise DependencyUnavailable("Invite store unavailable", code="store_unavailable") from e

        if invite is None or invite.project_id != project_id:
            raise NotFound(f"Invite {invite_id} not found", code="invite_not_found")
        return invite, "store"

    def _is_allowed(self, action_key: str, project: Project, actor: Actor) -> bool:
        member = self.members.get_active(project.id, actor.user_id)
        project_role = member.role if member else None
        return self.policy.is_allowed(
            action_key, project_role, actor.platform_roles, project.template_id
        )

    def _view(self, actor: Actor, invite: ProjectMemberInvite) -> dict[str, Any]:
        viewer = Viewer(
            user_id=actor.user_id,
            email=actor.email,
            privileged=self.policy.is_privileged(actor.platform_roles),
        )
        masked, _ = mask_payload(
            invite_view(invite),
            self.rules.masking.invite_view_paths,
            viewer,
            self.rules.masking.placeholder,
        )
        return masked

    def get_invite(self, inp: GetInviteInput) -> GetInviteOutput:
        project = self._get_project(inp.project_id)
        invite, source = self._lookup(project.id, inp.invite_id)

        if not inp.actor.owns(invite.user_id, invite.email):
            if not self._is_allowed(INVITE_GET_ALL, project, inp.actor):
                # Invites addressed to others are invisible, not forbidden
                raise NotFound(f"Invite {inp.invite_id} not found", code="invite_not_found")

        return GetInviteOutput(invite=invite, response=self._view(inp.actor, invite), source=source)

    def _member_user_id(self, invite: ProjectMemberInvite, actor: Actor) -> int:
        if invite.user_id is not None:
            return invite.user_id
        if actor.owns(None, invite.email):
            return actor.user_id

        try:
            users = self.identity.resolve_emails_to_users([normalize_email(invite.email or "")])
        except AccessError:
            raise
        except Exception as e:
            raise DependencyUnavailable(
                "Identity service lookup failed", code="identity_unavailable"
            ) from e
        for user in users:
            if invite.matches_email(user.email):
                return user.id
        raise ValidationError(
            "Invited email does not belong to a registered user",
            code="invitee_unresolved",
            details={"inviteId": invite.id},
        )

    def _store_call(self, fn, *args):  # type: ignore[no-untyped-def]
        try:
            return fn(*args)
        except AccessError:
            raise
        except Exception as e:
            raise DependencyUnavailable("Invite store unavailable", code="store_unavailable") from e

    def respond(self, inp: RespondInviteInput) -> RespondInviteOutput:
        project = self._get_project(inp.project_id)
        invite, _ = self._lookup(project.id, inp.invite_id)
        actor = inp.actor

        if not actor.owns(invite.user_id, invite.email):
            if not self._is_allowed(INVITE_UPDATE_ALL, project, actor):
                raise PolicyDenied(
                    "You are not allowed to respond to this invite",
                    details={"inviteId": invite.id},
                )

        if inp.decision not in get_args(InviteDecision):
            raise ValidationError(
                f"Unknown decision '{inp.decision}'", code="invalid_status"
            )
        if not can_transition(invite.status, inp.decision):
            raise Conflict(
                f"Invite {invite.id} is already {invite.status}",
                code="invite_not_pending",
            )

        now = self._now()
        member: ProjectMember | None = None
        if inp.decision == "accepted":
            user_id = self._member_user_id(invite, actor)
            if self.members.get_active(project.id, user_id) is not None:
                raise Conflict(
                    "User is already a member of the project", code="already_member"
                )
            updated, member = self._store_call(
                self.invites.accept, invite.id, user_id, actor.user_id, now
            )
        else:
            updated = self._store_call(self.invites.reject, invite.id, actor.user_id, now)

        logger.info(
            "Invite %s on project %s %s by user %s",
            updated.id, project.id, updated.status, actor.user_id,
        )

        events = self._emit(updated, member, actor)
        return RespondInviteOutput(
            invite=updated,
            member=member,
            response=self._view(actor, updated),
            events=events,
        )

    def _emit(
        self,
        invite: ProjectMemberInvite,
        member: ProjectMember | None,
        actor: Actor,
    ) -> list[PublishOutput]:
        events = [
            self.publisher.publish(
                INVITE_UPDATED,
                {
                    "projectId": invite.project_id,
                    "inviteId": invite.id,
                    "userId": invite.user_id,
                    "email": invite.email,
                    "role": invite.role,
                    "status": invite.status,
                    "updatedBy": actor.user_id,
                },
            )
        ]
        if member is not None:
            events.append(
                self.publisher.publish(
                    MEMBER_ADDED,
                    {
                        "projectId": member.project_id,
                        "memberId": member.id,
                        "userId": member.user_id,
                        "role": member.role,
                        "isPrimary": member.is_primary,
                        "initiatorUserId": actor.user_id,
                    },
                )
            )
        return events


# --- Component Entry Points ---


def run_get(inp: GetInviteInput, *, acceptance: InviteAcceptance) -> GetInviteOutput:
    return acceptance.get_invite(inp)


def run_respond(inp: RespondInviteInput, *, acceptance: InviteAcceptance) -> RespondInviteOutput:
    return acceptance.respond(inp)
