import os

import pytest

from project_access.adapters.identity_stub import StaticIdentityService
from project_access.adapters.sqlite.migrator import SQLiteMigrator
from project_access.context import ServiceContext
from project_access.domain.entities import PlatformUser
from project_access.rules.loader import load_rules


@pytest.fixture
def rules():
    """The packaged access rules."""
    return load_rules()


@pytest.fixture
def identity() -> StaticIdentityService:
    service = StaticIdentityService()
    service.add_user(PlatformUser(id=100, email="alice@example.com", handle="alice"), ["topcoder_user"])
    service.add_user(PlatformUser(id=101, email="bob@example.com", handle="bob"), ["connect_copilot"])
    service.add_user(PlatformUser(id=102, email="carol@example.com", handle="carol"), ["connect_manager"])
    return service


@pytest.fixture
def db_path(tmp_path) -> str:
    path = os.path.join(str(tmp_path), "access.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def test_ctx(db_path, rules, identity) -> ServiceContext:
    """
    Full ServiceContext backed by a temporary, migrated SQLite DB.

    Project 1 uses the default template, project 2 the enterprise one.
    User 10 is a customer on both, user 12 a copilot on project 1.
    """
    from project_access.domain.entities import Project, ProjectMember

    ctx = ServiceContext.create(db_path, rules, identity=identity)
    ctx.projects.save(Project(id=1, name="Website Redesign"))
    ctx.projects.save(Project(id=2, name="Data Platform", template_id="enterprise"))
    ctx.members.add(ProjectMember(project_id=1, user_id=10, role="customer", is_primary=True))
    ctx.members.add(ProjectMember(project_id=2, user_id=10, role="customer", is_primary=True))
    ctx.members.add(ProjectMember(project_id=1, user_id=12, role="copilot", is_primary=True))
    return ctx
