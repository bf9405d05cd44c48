"""
Role model.

Two disjoint axes are needed to evaluate a policy:
- project roles, held by a member on one specific project;
- platform roles, held by an identity independent of any project and sourced
  from the identity service.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal, get_args

logger = logging.getLogger(__name__)

ProjectRole = Literal[
    "customer",
    "observer",
    "copilot",
    "manager",
    "account_manager",
    "program_manager",
    "solution_architect",
    "project_manager",
]

PlatformRole = Literal[
    "administrator",
    "connect_admin",
    "connect_manager",
    "connect_copilot",
    "connect_copilot_manager",
    "topcoder_user",
]

PROJECT_ROLES: frozenset[str] = frozenset(get_args(ProjectRole))
PLATFORM_ROLES: frozenset[str] = frozenset(get_args(PlatformRole))

# --- Tiers ---

MANAGER_PROJECT_ROLES: frozenset[str] = frozenset(
    {
        "manager",
        "account_manager",
        "program_manager",
        "solution_architect",
        "project_manager",
    }
)

ADMIN_PLATFORM_ROLES: frozenset[str] = frozenset({"administrator", "connect_admin"})

MANAGER_PLATFORM_ROLES: frozenset[str] = ADMIN_PLATFORM_ROLES | {"connect_manager"}


def is_project_role(value: str | None) -> bool:
    return value in PROJECT_ROLES


def is_platform_role(value: str | None) -> bool:
    return value in PLATFORM_ROLES


def normalize_role_name(value: str) -> str:
    """Map identity-service spellings ("Connect Admin") to role keys."""
    return value.strip().lower().replace(" ", "_").replace("-", "_")


def parse_platform_roles(values: Iterable[str]) -> list[PlatformRole]:
    """
    Parse raw role names returned by the identity service.

    Unknown names are dropped; duplicates are collapsed while keeping order.
    """
    roles: list[PlatformRole] = []
    for raw in values:
        name = normalize_role_name(raw)
        if not is_platform_role(name):
            logger.debug("Ignoring unknown platform role %r", raw)
            continue
        if name not in roles:
            roles.append(name)  # type: ignore[arg-type]
    return roles


def has_any_role(roles: Iterable[str], required: Iterable[str]) -> bool:
    return not set(roles).isdisjoint(required)
