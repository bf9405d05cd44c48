import pytest
from pydantic import ValidationError

from project_access.domain.entities import (
    Actor,
    ProjectMemberInvite,
    can_transition,
    identity_key,
    normalize_email,
)
from project_access.domain.errors import (
    AccessError,
    Conflict,
    NotFound,
    PolicyDenied,
)
from project_access.domain.errors import ValidationError as AccessValidationError
from project_access.domain.roles import (
    has_any_role,
    is_platform_role,
    is_project_role,
    normalize_role_name,
    parse_platform_roles,
)


class TestRoles:
    def test_role_axes_are_disjoint(self):
        assert is_project_role("copilot")
        assert not is_platform_role("copilot")
        assert is_platform_role("connect_copilot")
        assert not is_project_role("connect_copilot")

    def test_normalize_role_name(self):
        assert normalize_role_name(" Connect Copilot Manager ") == "connect_copilot_manager"
        assert normalize_role_name("connect-admin") == "connect_admin"

    def test_parse_platform_roles_drops_unknown(self):
        roles = parse_platform_roles(["Topcoder User", "wizard", "topcoder_user", "Connect Admin"])
        assert roles == ["topcoder_user", "connect_admin"]

    def test_has_any_role(self):
        assert has_any_role(["a", "b"], ["b", "c"])
        assert not has_any_role([], ["a"])
        assert not has_any_role(["a"], [])


class TestIdentity:
    def test_email_normalization_is_case_only(self):
        assert normalize_email("  John.Doe@Example.COM ") == "john.doe@example.com"
        # Dots stay significant, including for gmail
        assert normalize_email("j.doe@gmail.com") != normalize_email("jdoe@gmail.com")

    def test_identity_key(self):
        assert identity_key(5, "x@y.com") == "user:5"
        assert identity_key(None, "X@Y.com") == "email:x@y.com"
        with pytest.raises(ValueError):
            identity_key(None, None)

    def test_actor_owns(self):
        actor = Actor(user_id=7, email="Me@Example.com")
        assert actor.owns(7, None)
        assert actor.owns(None, "me@example.com")
        assert not actor.owns(8, "other@example.com")
        assert not Actor(user_id=7).owns(None, "me@example.com")

    def test_actor_rejects_unknown_platform_role(self):
        with pytest.raises(ValidationError):
            Actor(user_id=1, platform_roles=["emperor"])


class TestInvite:
    def test_requires_an_identity(self):
        with pytest.raises(ValidationError):
            ProjectMemberInvite(project_id=1, role="customer")

    def test_identity_key_prefers_user_id(self):
        invite = ProjectMemberInvite(project_id=1, user_id=3, email="a@b.com", role="customer")
        assert invite.identity_key == "user:3"
        assert invite.is_pending

    def test_matches_email(self):
        invite = ProjectMemberInvite(project_id=1, email="A@B.com", role="customer")
        assert invite.matches_email("a@b.COM")
        assert not ProjectMemberInvite(project_id=1, user_id=3, role="customer").matches_email("a@b.com")

    def test_transitions(self):
        assert can_transition("pending", "accepted")
        assert can_transition("pending", "rejected")
        assert not can_transition("accepted", "rejected")
        assert not can_transition("rejected", "pending")


class TestErrors:
    def test_code_defaults_per_class(self):
        assert PolicyDenied("no").code == "policy_denied"
        assert NotFound("gone").code == "not_found"

    def test_code_override_and_dict(self):
        err = Conflict("dup", code="already_invited", details={"userId": 1})
        assert err.to_dict() == {
            "code": "already_invited",
            "message": "dup",
            "details": {"userId": 1},
        }

    def test_builtin_bases(self):
        assert isinstance(AccessValidationError("x"), ValueError)
        assert isinstance(PolicyDenied("x"), PermissionError)
        assert isinstance(NotFound("x"), LookupError)
        assert isinstance(Conflict("x"), AccessError)


class TestRoleTiers:
    def test_packaged_ceilings_follow_tiers(self, rules):
        from project_access.domain.roles import (
            ADMIN_PLATFORM_ROLES,
            MANAGER_PLATFORM_ROLES,
            MANAGER_PROJECT_ROLES,
        )

        for role in MANAGER_PROJECT_ROLES:
            assert set(rules.invites.role_ceilings[role]) == MANAGER_PLATFORM_ROLES
        assert set(rules.masking.privileged_roles) == ADMIN_PLATFORM_ROLES
