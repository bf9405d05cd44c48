from pydantic import BaseModel, ConfigDict, Field, model_validator

from project_access.domain.roles import (
    ADMIN_PLATFORM_ROLES,
    MANAGER_PLATFORM_ROLES,
    MANAGER_PROJECT_ROLES,
    PlatformRole,
    ProjectRole,
)


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RoleRule(BaseModel):
    project_roles: frozenset[ProjectRole] = frozenset()
    topcoder_roles: frozenset[PlatformRole] = frozenset()

    model_config = ConfigDict(frozen=True)


class PermissionPolicy(BaseModel):
    """Allow/deny rule pair governing one action for one project template."""

    allow_rule: RoleRule = Field(default_factory=RoleRule, alias="allow")
    deny_rule: RoleRule = Field(default_factory=RoleRule, alias="deny")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TemplatePolicies(BaseModel):
    version: int = 1
    policies: dict[str, PermissionPolicy]

    model_config = ConfigDict(frozen=True)


def _manager_ceilings() -> dict[ProjectRole, list[PlatformRole]]:
    # Manager-tier project roles can only be granted by manager-tier platform roles
    return {role: sorted(MANAGER_PLATFORM_ROLES) for role in sorted(MANAGER_PROJECT_ROLES)}  # type: ignore[misc]


class InviteRules(BaseModel):
    # project role -> platform roles an actor must hold to grant it
    role_ceilings: dict[ProjectRole, list[PlatformRole]] = Field(default_factory=_manager_ceilings)
    # project role -> platform roles the invitee must hold to receive it
    invitee_requirements: dict[ProjectRole, list[PlatformRole]] = Field(default_factory=dict)
    max_batch_size: int = 100
    lookup_workers: int = 4


class MaskingRules(BaseModel):
    placeholder: str = "**"
    privileged_roles: list[PlatformRole] = Field(
        default_factory=lambda: sorted(ADMIN_PLATFORM_ROLES)  # type: ignore[arg-type]
    )
    invite_response_paths: list[str]
    invite_view_paths: list[str]


class EventRules(BaseModel):
    max_attempts: int = 3
    retry_delay_seconds: float = 0.0
    sso_domains: list[str] = Field(default_factory=list)


class AccessRules(BaseModel):
    project: ProjectRules
    default_template: str
    templates: dict[str, TemplatePolicies]
    invites: InviteRules
    masking: MaskingRules
    events: EventRules

    @model_validator(mode="after")
    def _default_template_exists(self) -> "AccessRules":
        if self.default_template not in self.templates:
            raise ValueError(
                f"default_template '{self.default_template}' is not defined under templates"
            )
        return self
