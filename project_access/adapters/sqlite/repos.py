import sqlite3
from datetime import datetime
from typing import Any

from project_access.domain.entities import (
    Project,
    ProjectMember,
    ProjectMemberInvite,
)
from project_access.domain.errors import Conflict, DependencyUnavailable


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _unavailable() -> DependencyUnavailable:
    # Locked, missing or unreadable database; callers may retry
    return DependencyUnavailable("Database unavailable", code="store_unavailable")


class _SQLiteRepo:
    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            conn.row_factory = dict_factory
            conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        return conn


def _row_to_project(row: dict[str, Any]) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        status=row["status"],
        template_id=row["template_id"],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
        deleted_at=_parse_dt(row["deleted_at"]),
    )


def _row_to_member(row: dict[str, Any]) -> ProjectMember:
    return ProjectMember(
        id=row["id"],
        project_id=row["project_id"],
        user_id=row["user_id"],
        role=row["role"],
        is_primary=bool(row["is_primary"]),
        created_by=row["created_by"],
        created_at=_parse_dt(row["created_at"]),
        deleted_at=_parse_dt(row["deleted_at"]),
    )


def _row_to_invite(row: dict[str, Any]) -> ProjectMemberInvite:
    return ProjectMemberInvite(
        id=row["id"],
        project_id=row["project_id"],
        user_id=row["user_id"],
        email=row["email"],
        role=row["role"],
        status=row["status"],
        created_by=row["created_by"],
        updated_by=row["updated_by"],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


class SQLiteProjectRepo(_SQLiteRepo):
    def save(self, project: Project) -> Project:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO projects (
                    id, name, status, template_id, created_at, updated_at, deleted_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    status=excluded.status,
                    template_id=excluded.template_id,
                    updated_at=excluded.updated_at,
                    deleted_at=excluded.deleted_at
            """,
                (
                    project.id,
                    project.name,
                    project.status,
                    project.template_id,
                    _dt(project.created_at),
                    _dt(project.updated_at),
                    _dt(project.deleted_at),
                ),
            )
            conn.commit()
            return project
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise _unavailable() from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, project_id: int) -> Project | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
            return _row_to_project(row) if row else None
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        finally:
            conn.close()


class SQLiteMemberRepo(_SQLiteRepo):
    def add(self, member: ProjectMember) -> ProjectMember:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT INTO project_members
                (project_id, user_id, role, is_primary, created_by, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    member.project_id,
                    member.user_id,
                    member.role,
                    int(member.is_primary),
                    member.created_by,
                    _dt(member.created_at),
                ),
            )
            conn.commit()
            return member.model_copy(update={"id": cursor.lastrowid})
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise Conflict(
                f"User {member.user_id} is already a member of project {member.project_id}",
                code="already_member",
            ) from e
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise _unavailable() from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_active(self, project_id: int, user_id: int) -> ProjectMember | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT * FROM project_members
                WHERE project_id = ? AND user_id = ? AND deleted_at IS NULL
            """,
                (project_id, user_id),
            ).fetchone()
            return _row_to_member(row) if row else None
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        finally:
            conn.close()

    def list_active(self, project_id: int) -> list[ProjectMember]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM project_members
                WHERE project_id = ? AND deleted_at IS NULL
                ORDER BY id ASC
            """,
                (project_id,),
            ).fetchall()
            return [_row_to_member(r) for r in rows]
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        finally:
            conn.close()


class SQLiteInviteRepo(_SQLiteRepo):
    """
    Invite persistence.

    Pending uniqueness per (project, identity) is enforced by a partial
    unique index, so concurrent writers racing on the same identity see
    exactly one success. Status changes are conditional on the row still
    being pending.
    """

    def create(self, invite: ProjectMemberInvite) -> ProjectMemberInvite:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT INTO project_member_invites (
                    project_id, user_id, email, identity_key, role, status,
                    created_by, updated_by, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    invite.project_id,
                    invite.user_id,
                    invite.email,
                    invite.identity_key,
                    invite.role,
                    invite.status,
                    invite.created_by,
                    invite.updated_by,
                    _dt(invite.created_at),
                    _dt(invite.updated_at),
                ),
            )
            conn.commit()
            return invite.model_copy(update={"id": cursor.lastrowid})
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise Conflict(
                "A pending invite already exists for this identity",
                code="already_invited",
            ) from e
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise _unavailable() from e
        finally:
            conn.close()

    def get_by_id(self, invite_id: int) -> ProjectMemberInvite | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM project_member_invites WHERE id = ?", (invite_id,)
            ).fetchone()
            return _row_to_invite(row) if row else None
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        finally:
            conn.close()

    def list_pending(self, project_id: int) -> list[ProjectMemberInvite]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM project_member_invites
                WHERE project_id = ? AND status = 'pending'
                ORDER BY id ASC
            """,
                (project_id,),
            ).fetchall()
            return [_row_to_invite(r) for r in rows]
        except sqlite3.OperationalError as e:
            raise _unavailable() from e
        finally:
            conn.close()

    def _transition(
        self,
        conn: sqlite3.Connection,
        invite_id: int,
        status: str,
        updated_by: int,
        updated_at: datetime,
    ) -> None:
        cursor = conn.execute(
            """
            UPDATE project_member_invites
            SET status = ?, updated_by = ?, updated_at = ?
            WHERE id = ? AND status = 'pending'
        """,
            (status, updated_by, _dt(updated_at), invite_id),
        )
        if cursor.rowcount != 1:
            raise Conflict("Invite is no longer pending", code="invite_not_pending")

    def accept(
        self,
        invite_id: int,
        user_id: int,
        updated_by: int,
        updated_at: datetime,
    ) -> tuple[ProjectMemberInvite, ProjectMember]:
        """Mark the invite accepted and add the member in one transaction."""
        conn = self._get_conn()
        try:
            # Take the write lock up front so the primary check and insert agree
            conn.execute("BEGIN IMMEDIATE")
            self._transition(conn, invite_id, "accepted", updated_by, updated_at)
            row = conn.execute(
                "SELECT * FROM project_member_invites WHERE id = ?", (invite_id,)
            ).fetchone()
            invite = _row_to_invite(row)

            holder = conn.execute(
                """
                SELECT 1 FROM project_members
                WHERE project_id = ? AND role = ? AND deleted_at IS NULL
            """,
                (invite.project_id, invite.role),
            ).fetchone()

            try:
                cursor = conn.execute(
                    """
                    INSERT INTO project_members
                    (project_id, user_id, role, is_primary, created_by, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (
                        invite.project_id,
                        user_id,
                        invite.role,
                        int(holder is None),
                        updated_by,
                        _dt(updated_at),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise Conflict(
                    "User is already a member of the project", code="already_member"
                ) from e

            member = _row_to_member(
                conn.execute(
                    "SELECT * FROM project_members WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()
            )
            conn.commit()
            return invite, member
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise _unavailable() from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def reject(
        self, invite_id: int, updated_by: int, updated_at: datetime
    ) -> ProjectMemberInvite:
        conn = self._get_conn()
        try:
            self._transition(conn, invite_id, "rejected", updated_by, updated_at)
            row = conn.execute(
                "SELECT * FROM project_member_invites WHERE id = ?", (invite_id,)
            ).fetchone()
            conn.commit()
            return _row_to_invite(row)
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise _unavailable() from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
