"""
Masking component - Email masking for payloads crossing the trust boundary.

Masks email addresses at configured matcher paths unless the viewer owns the
address or holds a privileged role.

Invariants:
- First and last character of the local part are kept, the domain is kept
- The interior is replaced with a fixed-length placeholder
- Masking is idempotent: an already-masked address is returned unchanged
- Input payloads are never mutated
"""

from __future__ import annotations

import copy
from typing import Any

from project_access.domain.entities import normalize_email

from .models import MaskingValidationError, MaskPayloadInput, MaskPayloadOutput, Viewer

DEFAULT_PLACEHOLDER = "**"

# Path token meaning "every element of a list"
EACH = object()

_OWNER_ID_KEYS = ("userId", "user_id")


# --- Pure Functions (Functional Core) ---


def is_masked(email: str, placeholder: str = DEFAULT_PLACEHOLDER) -> bool:
    """Check whether the local part already has the masked shape."""
    local, sep, _ = email.rpartition("@")
    if not sep or not local:
        return False
    size = len(placeholder)
    return local[1 : 1 + size] == placeholder and len(local) in (1 + size, 2 + size)


def mask_email(email: str, placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    """
    Mask the local part of an email address.

    Examples:
        john.doe@example.com -> j**e@example.com
        ab@example.com       -> a**@example.com

    Strings without '@' are returned unchanged.
    """
    local, sep, domain = email.rpartition("@")
    if not sep or not local:
        return email
    if is_masked(email, placeholder):
        return email
    if len(local) <= 2:
        masked_local = local[0] + placeholder
    else:
        masked_local = local[0] + placeholder + local[-1]
    return f"{masked_local}@{domain}"


def parse_path(path: str) -> list[Any]:
    """
    Parse a matcher path into tokens.

    Grammar: '$' followed by any sequence of '.key' and '[*]'.
    e.g. '$.success[*].email', '$[*].email', '$.email'
    """
    if not path.startswith("$"):
        raise ValueError(f"Path must start with '$': {path!r}")

    tokens: list[Any] = []
    i = 1
    while i < len(path):
        if path.startswith("[*]", i):
            tokens.append(EACH)
            i += 3
        elif path[i] == ".":
            end = i + 1
            while end < len(path) and path[end] not in ".[":
                end += 1
            key = path[i + 1 : end]
            if not key:
                raise ValueError(f"Empty key in path: {path!r}")
            tokens.append(key)
            i = end
        else:
            raise ValueError(f"Unexpected character {path[i]!r} in path: {path!r}")
    return tokens


def should_mask(value: str, container: Any, viewer: Viewer) -> bool:
    if viewer.privileged:
        return False
    if viewer.email and normalize_email(value) == normalize_email(viewer.email):
        return False
    if viewer.user_id is not None and isinstance(container, dict):
        for key in _OWNER_ID_KEYS:
            if container.get(key) == viewer.user_id:
                return False
    return True


def _mask_slot(container: Any, slot: Any, viewer: Viewer, placeholder: str) -> int:
    value = container[slot]
    if not isinstance(value, str):
        return 0
    owner_context = container if isinstance(container, dict) else None
    if not should_mask(value, owner_context, viewer):
        return 0
    masked = mask_email(value, placeholder)
    if masked == value:
        return 0
    container[slot] = masked
    return 1


def _walk(node: Any, tokens: list[Any], viewer: Viewer, placeholder: str) -> int:
    token, rest = tokens[0], tokens[1:]

    if token is EACH:
        if not isinstance(node, list):
            return 0
        if not rest:
            return sum(_mask_slot(node, i, viewer, placeholder) for i in range(len(node)))
        return sum(_walk(item, rest, viewer, placeholder) for item in node)

    if not isinstance(node, dict) or token not in node:
        return 0
    if not rest:
        return _mask_slot(node, token, viewer, placeholder)
    return _walk(node[token], rest, viewer, placeholder)


def mask_payload(
    payload: Any,
    paths: list[str] | tuple[str, ...],
    viewer: Viewer,
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> tuple[Any, int]:
    """
    Return a masked deep copy of ``payload`` and the number of values masked.

    Raises ValueError on a malformed path.
    """
    parsed = [parse_path(p) for p in paths]
    result = copy.deepcopy(payload)
    count = 0

    for tokens in parsed:
        if not tokens:
            if isinstance(result, str) and should_mask(result, None, viewer):
                masked = mask_email(result, placeholder)
                count += int(masked != result)
                result = masked
            continue
        count += _walk(result, tokens, viewer, placeholder)

    return result, count


# --- Component Entry Point ---


def run(inp: MaskPayloadInput) -> MaskPayloadOutput:
    try:
        payload, count = mask_payload(inp.payload, inp.paths, inp.viewer, inp.placeholder)
    except ValueError as e:
        return MaskPayloadOutput(
            payload=None,
            errors=[MaskingValidationError(code="invalid_path", message=str(e))],
            success=False,
        )
    return MaskPayloadOutput(payload=payload, masked_count=count)
