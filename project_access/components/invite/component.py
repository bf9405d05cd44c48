"""
Invite component - Project member invitation batches.

Creates pending invites for a batch of user ids and emails. Each identity
either becomes an invite or a failure entry; the batch never aborts on a
per-identity problem.

Invariants:
- Authorization and validation failures abort before any mutation
- At most one pending invite per project and normalised identity
  (user id exact, email case-insensitive), including within one batch
- One invite-created event per created invite, in creation order
- Emails in the response are masked for non-owner, non-privileged actors
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any

from project_access.components.events import INVITE_CREATED, PublishOutput
from project_access.components.masking import (
    DEFAULT_PLACEHOLDER,
    Viewer,
    mask_email,
    mask_payload,
)
from project_access.domain.entities import (
    Actor,
    PlatformUser,
    Project,
    ProjectMemberInvite,
    normalize_email,
)
from project_access.domain.errors import (
    AccessError,
    Conflict,
    DependencyUnavailable,
    NotFound,
    ValidationError,
)
from project_access.domain.policy import INVITE_CREATE, PolicyEngine
from project_access.domain.roles import has_any_role, is_project_role, parse_platform_roles

from .models import (
    ALREADY_INVITED,
    ALREADY_MEMBER,
    ROLE_NOT_ALLOWED,
    CreateInvitesInput,
    CreateInvitesOutput,
    InviteCandidate,
    InviteFailure,
    PartitionResult,
    invite_view,
)
from .ports import (
    IdentityPort,
    InviteRepoPort,
    MemberRepoPort,
    ProjectRepoPort,
    PublisherPort,
    TimePort,
)

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)


# --- Pure Functions (Functional Core) ---


def validate_request(
    inp: CreateInvitesInput, max_batch_size: int, placeholder: str = DEFAULT_PLACEHOLDER
) -> None:
    """Raise ValidationError for malformed requests."""
    if not inp.user_ids and not inp.emails:
        raise ValidationError(
            "Either userIds or emails are required", code="identities_required"
        )

    if not is_project_role(inp.role):
        raise ValidationError(
            f"Unknown project role '{inp.role}'",
            code="invalid_role",
            details={"role": inp.role},
        )

    if len(inp.user_ids) + len(inp.emails) > max_batch_size:
        raise ValidationError(
            f"At most {max_batch_size} identities may be invited at once",
            code="batch_too_large",
        )

    for user_id in inp.user_ids:
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            raise ValidationError(
                f"Invalid user id: {user_id!r}",
                code="invalid_user_id",
                details={"userId": user_id},
            )

    for email in inp.emails:
        if not isinstance(email, str) or not EMAIL_REGEX.match(email.strip()):
            raise ValidationError(
                "Invalid email format",
                code="invalid_email",
                details={"email": mask_email(str(email), placeholder)},
            )


def _member_failure(user_id: int | None, email: str | None) -> InviteFailure:
    if email is not None:
        return InviteFailure(
            code=ALREADY_MEMBER,
            message="User with such email is already a member of the team.",
            email=email,
        )
    return InviteFailure(
        code=ALREADY_MEMBER,
        message="User with such handle is already a member of the team.",
        user_id=user_id,
    )


def _invited_failure(user_id: int | None, email: str | None) -> InviteFailure:
    if email is not None:
        return InviteFailure(
            code=ALREADY_INVITED,
            message="User with such email is already invited to this project.",
            email=email,
        )
    return InviteFailure(
        code=ALREADY_INVITED,
        message="User with such handle is already invited to this project.",
        user_id=user_id,
    )


def candidate_failure(candidate: InviteCandidate, failure_code: str, role: str) -> InviteFailure:
    """Failure entry for a candidate, echoing the identity as it was submitted."""
    if candidate.by_email:
        user_id, email = None, candidate.email
    else:
        user_id, email = candidate.user_id, None

    if failure_code == ALREADY_INVITED:
        return _invited_failure(user_id, email)
    if failure_code == ALREADY_MEMBER:
        return _member_failure(user_id, email)
    return InviteFailure(
        code=ROLE_NOT_ALLOWED,
        message=f"User cannot be invited as {role} because they do not hold a required role.",
        user_id=user_id,
        email=email,
    )


def partition_identities(
    user_ids: Sequence[int],
    emails: Sequence[str],
    resolved: Mapping[str, PlatformUser],
    member_user_ids: set[int],
    pending: Iterable[ProjectMemberInvite],
) -> PartitionResult:
    """
    Split requested identities into candidates and failures.

    Identities are processed in submission order, user ids first. The first
    occurrence of an identity wins; later duplicates in the same request are
    reported as already invited.

    Args:
        user_ids: Requested numeric identities
        emails: Requested email identities, as submitted
        resolved: Platform users keyed by normalised email
        member_user_ids: Active members of the project
        pending: Pending invites of the project
    """
    pending_user_ids: set[int] = set()
    pending_emails: set[str] = set()
    for invite in pending:
        if invite.user_id is not None:
            pending_user_ids.add(invite.user_id)
        if invite.email:
            pending_emails.add(normalize_email(invite.email))

    seen_user_ids: set[int] = set()
    seen_emails: set[str] = set()
    candidates: list[InviteCandidate] = []
    failed: list[InviteFailure] = []

    for user_id in user_ids:
        if user_id in member_user_ids:
            failed.append(_member_failure(user_id, None))
        elif user_id in pending_user_ids or user_id in seen_user_ids:
            failed.append(_invited_failure(user_id, None))
        else:
            candidates.append(InviteCandidate(user_id=user_id))
            seen_user_ids.add(user_id)

    for raw_email in emails:
        submitted = raw_email.strip()
        key = normalize_email(submitted)
        user = resolved.get(key)

        if user is not None and user.id in member_user_ids:
            failed.append(_member_failure(None, submitted))
            continue

        duplicate = key in pending_emails or key in seen_emails
        if user is not None:
            duplicate = duplicate or user.id in pending_user_ids or user.id in seen_user_ids
        if duplicate:
            failed.append(_invited_failure(None, submitted))
            continue

        seen_emails.add(key)
        if user is not None:
            # Resolved: keyed by user id, email backfilled from the identity
            seen_user_ids.add(user.id)
            candidates.append(InviteCandidate(user_id=user.id, email=user.email, by_email=True))
        else:
            candidates.append(InviteCandidate(email=submitted, by_email=True))

    return PartitionResult(candidates=candidates, failed=failed)


def is_sso_email(email: str | None, sso_domains: Iterable[str]) -> bool:
    if not email or "@" not in email:
        return False
    domain = email.rpartition("@")[2].lower()
    return domain in {d.lower() for d in sso_domains}


# --- Imperative Shell ---


class InviteManager:
    def __init__(
        self,
        projects: ProjectRepoPort,
        members: MemberRepoPort,
        invites: InviteRepoPort,
        identity: IdentityPort,
        policy: PolicyEngine,
        publisher: PublisherPort,
        time: TimePort | None = None,
    ):
        self.projects = projects
        self.members = members
        self.invites = invites
        self.identity = identity
        self.policy = policy
        self.publisher = publisher
        self.time = time
        self.rules = policy.rules

    def _now(self) -> datetime:
        return self.time.now_utc() if self.time else datetime.now(UTC)

    def _get_project(self, project_id: int) -> Project:
        project = self.projects.get_by_id(project_id)
        if project is None or project.deleted_at is not None:
            raise NotFound(f"Project {project_id} not found", code="project_not_found")
        return project

    def _authorize(self, project: Project, actor: Actor, role: str) -> None:
        member = self.members.get_active(project.id, actor.user_id)
        project_role = member.role if member else None
        self.policy.require(INVITE_CREATE, project_role, actor.platform_roles, project.template_id)
        self.policy.require_assignable(role, actor.platform_roles)

    def _resolve_emails(self, emails: Sequence[str]) -> dict[str, PlatformUser]:
        unique = list(dict.fromkeys(normalize_email(e) for e in emails))
        if not unique:
            return {}
        try:
            users = self.identity.resolve_emails_to_users(unique)
        except AccessError:
            raise
        except Exception as e:
            raise DependencyUnavailable(
                "Identity service lookup failed", code="identity_unavailable"
            ) from e
        return {normalize_email(u.email): u for u in users}

    def _platform_roles(self, user_ids: list[int]) -> dict[int, list[str]]:
        if not user_ids:
            return {}
        workers = max(1, min(self.rules.invites.lookup_workers, len(user_ids)))
        try:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self.identity.get_platform_roles, user_ids))
        except AccessError:
            raise
        except Exception as e:
            raise DependencyUnavailable(
                "Identity service role lookup failed", code="identity_unavailable"
            ) from e
        return {uid: list(parse_platform_roles(roles)) for uid, roles in zip(user_ids, results)}

    def _check_eligibility(
        self, role: str, candidates: list[InviteCandidate]
    ) -> tuple[list[InviteCandidate], list[InviteFailure]]:
        required = self.policy.invitee_roles_required(role)
        if not required:
            return candidates, []

        user_ids = [c.user_id for c in candidates if c.user_id is not None]
        roles_by_user = self._platform_roles(user_ids)

        eligible: list[InviteCandidate] = []
        failed: list[InviteFailure] = []
        for candidate in candidates:
            roles = roles_by_user.get(candidate.user_id, []) if candidate.user_id else []
            if has_any_role(roles, required):
                eligible.append(candidate)
            else:
                failed.append(candidate_failure(candidate, ROLE_NOT_ALLOWED, role))
        return eligible, failed

    def _persist(
        self,
        project: Project,
        inp: CreateInvitesInput,
        candidates: list[InviteCandidate],
        created: list[ProjectMemberInvite],
        failed: list[InviteFailure],
    ) -> None:
        for candidate in candidates:
            now = self._now()
            invite = ProjectMemberInvite(
                project_id=project.id,
                user_id=candidate.user_id,
                email=candidate.email,
                role=inp.role,  # type: ignore[arg-type]
                status="pending",
                created_by=inp.actor.user_id,
                updated_by=inp.actor.user_id,
                created_at=now,
                updated_at=now,
            )
            try:
                created.append(self.invites.create(invite))
            except Conflict:
                logger.info(
                    "Pending invite for %s on project %s created concurrently",
                    invite.user_id if invite.user_id is not None else mask_email(invite.email or ""),
                    project.id,
                )
                failed.append(candidate_failure(candidate, ALREADY_INVITED, inp.role))
            except AccessError:
                raise
            except Exception as e:
                raise DependencyUnavailable(
                    "Invite store unavailable", code="store_unavailable"
                ) from e

    def _emit_created(
        self, project: Project, actor: Actor, created: list[ProjectMemberInvite]
    ) -> list[PublishOutput]:
        sso_domains = self.rules.events.sso_domains
        outputs = []
        for invite in created:
            outputs.append(
                self.publisher.publish(
                    INVITE_CREATED,
                    {
                        "projectId": project.id,
                        "inviteId": invite.id,
                        "userId": invite.user_id,
                        "email": invite.email,
                        "role": invite.role,
                        "initiatorUserId": actor.user_id,
                        "isSSO": is_sso_email(invite.email, sso_domains),
                    },
                )
            )
        return outputs

    def build_response(
        self,
        actor: Actor,
        invites: list[ProjectMemberInvite],
        failed: list[InviteFailure],
    ) -> dict[str, Any]:
        payload = {
            "success": [invite_view(i) for i in invites],
            "failed": [f.to_dict() for f in failed],
        }
        viewer = Viewer(
            user_id=actor.user_id,
            email=actor.email,
            privileged=self.policy.is_privileged(actor.platform_roles),
        )
        masked, _ = mask_payload(
            payload,
            self.rules.masking.invite_response_paths,
            viewer,
            self.rules.masking.placeholder,
        )
        return masked

    def create_invites(self, inp: CreateInvitesInput) -> CreateInvitesOutput:
        validate_request(
            inp, self.rules.invites.max_batch_size, self.rules.masking.placeholder
        )

        project = self._get_project(inp.project_id)
        self._authorize(project, inp.actor, inp.role)

        resolved = self._resolve_emails(inp.emails)
        member_user_ids = {m.user_id for m in self.members.list_active(project.id)}
        pending = self.invites.list_pending(project.id)

        partition = partition_identities(
            inp.user_ids, inp.emails, resolved, member_user_ids, pending
        )
        candidates, ineligible = self._check_eligibility(inp.role, partition.candidates)
        failed = partition.failed + ineligible

        created: list[ProjectMemberInvite] = []
        events: list[PublishOutput] = []
        try:
            self._persist(project, inp, candidates, created, failed)
        finally:
            # Committed invites are announced even when the batch aborts
            events = self._emit_created(project, inp.actor, created)

        logger.info(
            "Invite batch on project %s by user %s: %d created, %d failed",
            project.id, inp.actor.user_id, len(created), len(failed),
        )

        return CreateInvitesOutput(
            invites=created,
            failed=failed,
            response=self.build_response(inp.actor, created, failed),
            events=events,
        )


# --- Component Entry Point ---


def run_create(
    inp: CreateInvitesInput,
    *,
    projects: ProjectRepoPort,
    members: MemberRepoPort,
    invites: InviteRepoPort,
    identity: IdentityPort,
    policy: PolicyEngine,
    publisher: PublisherPort,
    time: TimePort | None = None,
) -> CreateInvitesOutput:
    manager = InviteManager(projects, members, invites, identity, policy, publisher, time)
    return manager.create_invites(inp)
