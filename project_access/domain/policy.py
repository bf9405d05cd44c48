from collections.abc import Iterable
from enum import Enum

from project_access.domain.errors import PolicyDenied, PolicyMissing
from project_access.domain.roles import has_any_role
from project_access.rules.models import AccessRules, PermissionPolicy, RoleRule

INVITE_CREATE = "projectMemberInvite.create"
INVITE_GET_ALL = "projectMemberInvite.get.all"
INVITE_UPDATE_ALL = "projectMemberInvite.update.all"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def _rule_matches(rule: RoleRule, project_role: str | None, platform_roles: Iterable[str]) -> bool:
    if project_role is not None and project_role in rule.project_roles:
        return True
    return has_any_role(platform_roles, rule.topcoder_roles)


def authorize(
    action_key: str,
    project_role: str | None,
    platform_roles: Iterable[str],
    policy: PermissionPolicy | None,
) -> Decision:
    """
    Evaluate one action against an actor's roles.

    Order of precedence:
    1. Deny rule (project role or any platform role) -> DENY
    2. Allow rule (project role or any platform role) -> ALLOW
    3. Otherwise -> DENY

    ``project_role`` is None when the actor is not a member of the project;
    only platform roles are considered then.
    """
    if policy is None:
        raise PolicyMissing(f"No policy configured for action '{action_key}'")

    platform_roles = list(platform_roles)
    if _rule_matches(policy.deny_rule, project_role, platform_roles):
        return Decision.DENY
    if _rule_matches(policy.allow_rule, project_role, platform_roles):
        return Decision.ALLOW
    return Decision.DENY


class PolicyEngine:
    def __init__(self, rules: AccessRules):
        self.rules = rules

    def policy_for(self, template_id: str | None, action_key: str) -> PermissionPolicy:
        """
        Resolve the policy for an action on a project template.

        A template with no entry in the rules falls back to the default
        template. An action missing from the resolved template is a
        configuration error.
        """
        template_key = template_id if template_id in self.rules.templates else None
        template = self.rules.templates[template_key or self.rules.default_template]
        policy = template.policies.get(action_key)
        if policy is None:
            raise PolicyMissing(
                f"No policy for action '{action_key}' in template "
                f"'{template_key or self.rules.default_template}'",
                details={"action": action_key},
            )
        return policy

    def authorize(
        self,
        action_key: str,
        project_role: str | None,
        platform_roles: Iterable[str],
        template_id: str | None = None,
    ) -> Decision:
        policy = self.policy_for(template_id, action_key)
        return authorize(action_key, project_role, platform_roles, policy)

    def is_allowed(
        self,
        action_key: str,
        project_role: str | None,
        platform_roles: Iterable[str],
        template_id: str | None = None,
    ) -> bool:
        decision = self.authorize(action_key, project_role, platform_roles, template_id)
        return decision is Decision.ALLOW

    def require(
        self,
        action_key: str,
        project_role: str | None,
        platform_roles: Iterable[str],
        template_id: str | None = None,
    ) -> None:
        if not self.is_allowed(action_key, project_role, platform_roles, template_id):
            raise PolicyDenied(
                f"You do not have permission to perform '{action_key}'",
                details={"action": action_key},
            )

    # --- Dedicated rules beyond the generic policy ---

    def can_assign_role(self, role: str, platform_roles: Iterable[str]) -> bool:
        """Role-escalation guard: guarded roles need a qualifying platform role."""
        required = self.rules.invites.role_ceilings.get(role)  # type: ignore[call-overload]
        if not required:
            return True
        return has_any_role(platform_roles, required)

    def require_assignable(self, role: str, platform_roles: Iterable[str]) -> None:
        if not self.can_assign_role(role, platform_roles):
            raise PolicyDenied(
                f"You are not allowed to invite user as {role}",
                code="role_escalation",
                details={"role": role},
            )

    def invitee_roles_required(self, role: str) -> list[str]:
        return list(self.rules.invites.invitee_requirements.get(role, []))  # type: ignore[call-overload]

    def is_privileged(self, platform_roles: Iterable[str]) -> bool:
        """Privileged viewers see unmasked personal data."""
        return has_any_role(platform_roles, self.rules.masking.privileged_roles)
