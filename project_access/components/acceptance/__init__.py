"""
Acceptance component - Invite lookup and responses.
"""

from .component import InviteAcceptance, run_get, run_respond
from .models import (
    GetInviteInput,
    GetInviteOutput,
    RespondInviteInput,
    RespondInviteOutput,
)
from .ports import InviteSearchPort, InviteStorePort

__all__ = [
    # Entry points
    "InviteAcceptance",
    "run_get",
    "run_respond",
    # Models
    "GetInviteInput",
    "GetInviteOutput",
    "RespondInviteInput",
    "RespondInviteOutput",
    # Ports
    "InviteSearchPort",
    "InviteStorePort",
]
