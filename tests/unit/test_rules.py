"""
Access rules loading and validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from project_access.rules.loader import DEFAULT_RULES_PATH, load_rules, parse_rules
from project_access.rules.models import AccessRules

MINIMAL_RULES = """
project:
  slug: test
  rules_version: "0.1"
default_template: default
templates:
  default:
    policies:
      projectMemberInvite.create:
        allow:
          project_roles: [customer]
invites: {}
masking:
  privileged_roles: [administrator]
  invite_response_paths: ["$.success[*].email"]
  invite_view_paths: ["$.email"]
events: {}
"""


class TestLoadRules:
    def test_packaged_rules_load(self) -> None:
        rules = load_rules()

        assert isinstance(rules, AccessRules)
        assert rules.default_template == "default"
        assert set(rules.templates) == {"default", "enterprise"}
        assert rules.templates["enterprise"].version == 2

    def test_explicit_path_as_string(self) -> None:
        rules = load_rules(str(DEFAULT_RULES_PATH))
        assert rules.project.slug == "project-access"

    def test_missing_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(Path("/nonexistent/rules.yaml"))

    def test_custom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(MINIMAL_RULES)

        rules = load_rules(path)

        assert rules.invites.max_batch_size == 100
        assert rules.masking.placeholder == "**"
        assert rules.events.max_attempts == 3

    def test_omitted_role_sections_default_to_tiers(self) -> None:
        from project_access.domain.roles import MANAGER_PLATFORM_ROLES, MANAGER_PROJECT_ROLES

        rules = parse_rules(MINIMAL_RULES.replace("  privileged_roles: [administrator]\n", ""))

        assert set(rules.invites.role_ceilings) == MANAGER_PROJECT_ROLES
        assert set(rules.invites.role_ceilings["manager"]) == MANAGER_PLATFORM_ROLES
        assert "customer" not in rules.invites.role_ceilings
        assert sorted(rules.masking.privileged_roles) == ["administrator", "connect_admin"]


class TestParseRules:
    def test_markdown_fenced_yaml(self) -> None:
        content = f"# Access rules\n\n```yaml\n{MINIMAL_RULES}\n```\n\nNotes follow."
        rules = parse_rules(content)
        assert rules.project.slug == "test"

    def test_policy_aliases(self) -> None:
        rules = parse_rules(MINIMAL_RULES)
        policy = rules.templates["default"].policies["projectMemberInvite.create"]

        assert policy.allow_rule.project_roles == frozenset({"customer"})
        assert policy.deny_rule.project_roles == frozenset()

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            parse_rules("project: [unclosed")

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValueError, match="validation failed"):
            parse_rules(MINIMAL_RULES.replace("[customer]", "[emperor]"))

    def test_default_template_must_exist(self) -> None:
        with pytest.raises(ValueError, match="default_template"):
            parse_rules(MINIMAL_RULES.replace("default_template: default", "default_template: gone"))

    def test_missing_section(self) -> None:
        with pytest.raises(ValueError):
            parse_rules(MINIMAL_RULES.replace("events: {}", ""))
