"""
Static identity directory.

Stands in for the platform identity service in development and tests.
Email lookups are case-insensitive; unknown emails are simply absent from
the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from project_access.domain.entities import PlatformUser, normalize_email

logger = logging.getLogger(__name__)


class StaticIdentityService:
    def __init__(
        self,
        users: Iterable[PlatformUser] = (),
        roles: dict[int, list[str]] | None = None,
    ):
        self._by_id: dict[int, PlatformUser] = {}
        self._by_email: dict[str, PlatformUser] = {}
        self._roles: dict[int, list[str]] = dict(roles or {})
        for user in users:
            self.add_user(user)

    def add_user(self, user: PlatformUser, roles: list[str] | None = None) -> None:
        self._by_id[user.id] = user
        self._by_email[normalize_email(user.email)] = user
        if roles is not None:
            self._roles[user.id] = list(roles)

    def resolve_emails_to_users(self, emails: Sequence[str]) -> list[PlatformUser]:
        found = []
        for email in emails:
            user = self._by_email.get(normalize_email(email))
            if user is not None and user not in found:
                found.append(user)
        logger.debug("Resolved %d of %d emails", len(found), len(emails))
        return found

    def get_platform_roles(self, user_id: int) -> list[str]:
        return list(self._roles.get(user_id, []))

    def get_user(self, user_id: int) -> PlatformUser | None:
        return self._by_id.get(user_id)
