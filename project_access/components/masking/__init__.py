"""
Masking component - Email masking for response payloads.
"""

from .component import (
    DEFAULT_PLACEHOLDER,
    is_masked,
    mask_email,
    mask_payload,
    parse_path,
    run,
)
from .models import (
    MaskingValidationError,
    MaskPayloadInput,
    MaskPayloadOutput,
    Viewer,
)

__all__ = [
    # Component
    "run",
    # Pure functions
    "mask_email",
    "mask_payload",
    "is_masked",
    "parse_path",
    # Constants
    "DEFAULT_PLACEHOLDER",
    # Models
    "MaskPayloadInput",
    "MaskPayloadOutput",
    "MaskingValidationError",
    "Viewer",
]
