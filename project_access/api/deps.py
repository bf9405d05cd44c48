import logging
import threading

from fastapi import Depends, Header, HTTPException, status

from project_access.adapters.sqlite.migrator import SQLiteMigrator
from project_access.config import Settings, get_settings
from project_access.context import ServiceContext
from project_access.domain.entities import Actor
from project_access.domain.roles import parse_platform_roles
from project_access.rules.loader import load_rules

logger = logging.getLogger(__name__)

# Context singleton, built on first use
_context_instance: ServiceContext | None = None
_context_lock = threading.Lock()


def build_context(settings: Settings) -> ServiceContext:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path).run_migrations()
    rules = load_rules(settings.rules_path)
    logger.info("Access rules %s loaded", rules.project.rules_version)
    return ServiceContext.create(settings.db_path, rules)


def get_context(settings: Settings = Depends(get_settings)) -> ServiceContext:
    """Get service context singleton."""
    global _context_instance
    if _context_instance is None:
        with _context_lock:
            if _context_instance is None:
                _context_instance = build_context(settings)
    return _context_instance


# --- Actor ---
def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_roles: str | None = Header(default=None),
) -> Actor:
    """
    Build the acting user from trusted gateway headers.

    X-User-Roles is a comma-separated list; unknown roles are ignored.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user id header",
        ) from None

    roles = parse_platform_roles(
        r.strip() for r in (x_user_roles or "").split(",") if r.strip()
    )
    return Actor(user_id=user_id, email=x_user_email or None, platform_roles=list(roles))
