"""
In-memory invite search index.

Read-optimised copy of invites, fed from invite events the way the
production indexer consumes the event bus. Lookups may lag behind the
store; callers fall back to the store on a miss.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import Any

from project_access.components.events import INVITE_CREATED, INVITE_UPDATED
from project_access.domain.entities import ProjectMemberInvite

logger = logging.getLogger(__name__)


class IndexUnavailableError(ConnectionError):
    pass


class InMemoryInviteIndex:
    def __init__(self) -> None:
        self._docs: dict[tuple[int, int], ProjectMemberInvite] = {}
        self._lock = threading.Lock()
        self.available = True

    # --- Event sink ---

    def publish(self, kind: str, payload: dict[str, Any]) -> None:
        if kind == INVITE_CREATED:
            now = datetime.now(UTC)
            self.index(
                ProjectMemberInvite(
                    id=payload["inviteId"],
                    project_id=payload["projectId"],
                    user_id=payload.get("userId"),
                    email=payload.get("email"),
                    role=payload["role"],
                    status="pending",
                    created_by=payload.get("initiatorUserId"),
                    updated_by=payload.get("initiatorUserId"),
                    created_at=now,
                    updated_at=now,
                )
            )
        elif kind == INVITE_UPDATED:
            key = (payload["projectId"], payload["inviteId"])
            with self._lock:
                doc = self._docs.get(key)
                if doc is not None:
                    self._docs[key] = doc.model_copy(
                        update={
                            "status": payload["status"],
                            "updated_by": payload.get("updatedBy"),
                            "updated_at": datetime.now(UTC),
                        }
                    )

    # --- Search port ---

    def index(self, invite: ProjectMemberInvite) -> None:
        with self._lock:
            self._docs[(invite.project_id, invite.id)] = invite  # type: ignore[index]

    def find_invite(self, project_id: int, invite_id: int) -> ProjectMemberInvite | None:
        if not self.available:
            raise IndexUnavailableError("search index unavailable")
        with self._lock:
            return self._docs.get((project_id, invite_id))

    # --- Test Helper Methods ---

    def clear(self) -> None:
        with self._lock:
            self._docs.clear()

    def __len__(self) -> int:
        return len(self._docs)
