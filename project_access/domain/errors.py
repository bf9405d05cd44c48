"""
Error taxonomy.

Every error carries a stable machine-readable ``code`` next to the
human-readable message so API consumers can branch without string matching.
Batch outcomes with mixed results are not errors: see
``CreateInvitesOutput.outcome``.
"""

from __future__ import annotations

from typing import Any


class AccessError(Exception):
    """Base class for all project access errors."""

    code = "access_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AccessError, ValueError):
    """Malformed or missing input. The caller's fault; do not retry."""

    code = "validation_error"


class PolicyDenied(AccessError, PermissionError):
    """Authorization failed. Terminal."""

    code = "policy_denied"


class NotFound(AccessError, LookupError):
    """Target project or invite is absent or not visible to the caller."""

    code = "not_found"


class Conflict(AccessError):
    """Duplicate invite, existing membership or a response to a resolved invite."""

    code = "conflict"


class DependencyUnavailable(AccessError):
    """Identity service or store unreachable. Safe to retry."""

    code = "dependency_unavailable"


class PolicyMissing(AccessError):
    """No policy is configured for an action. A configuration error, never an implicit decision."""

    code = "policy_missing"
