"""
Masking component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Viewer:
    """Who is looking at the payload."""

    user_id: int | None = None
    email: str | None = None
    privileged: bool = False


@dataclass(frozen=True)
class MaskingValidationError:
    code: str
    message: str
    path: str | None = None


@dataclass(frozen=True)
class MaskPayloadInput:
    payload: Any
    paths: tuple[str, ...]
    viewer: Viewer = field(default_factory=Viewer)
    placeholder: str = "**"


@dataclass(frozen=True)
class MaskPayloadOutput:
    payload: Any
    masked_count: int = 0
    errors: list[MaskingValidationError] = field(default_factory=list)
    success: bool = True
