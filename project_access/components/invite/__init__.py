"""
Invite component - Batch creation of project member invites.
"""

from .component import (
    EMAIL_REGEX,
    InviteManager,
    candidate_failure,
    is_sso_email,
    partition_identities,
    run_create,
    validate_request,
)
from .models import (
    ALREADY_INVITED,
    ALREADY_MEMBER,
    ROLE_NOT_ALLOWED,
    BatchOutcome,
    CreateInvitesInput,
    CreateInvitesOutput,
    InviteCandidate,
    InviteFailure,
    PartitionResult,
    invite_view,
)
from .ports import (
    IdentityPort,
    InviteRepoPort,
    MemberRepoPort,
    ProjectRepoPort,
    PublisherPort,
    TimePort,
)

__all__ = [
    # Entry points
    "InviteManager",
    "run_create",
    # Pure functions
    "validate_request",
    "partition_identities",
    "candidate_failure",
    "is_sso_email",
    "invite_view",
    "EMAIL_REGEX",
    # Failure codes
    "ALREADY_INVITED",
    "ALREADY_MEMBER",
    "ROLE_NOT_ALLOWED",
    # Models
    "BatchOutcome",
    "CreateInvitesInput",
    "CreateInvitesOutput",
    "InviteCandidate",
    "InviteFailure",
    "PartitionResult",
    # Ports
    "IdentityPort",
    "InviteRepoPort",
    "MemberRepoPort",
    "ProjectRepoPort",
    "PublisherPort",
    "TimePort",
]
