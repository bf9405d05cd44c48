from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from project_access.api.deps import get_actor, get_context
from project_access.api.schemas import InviteCreateRequest, InviteUpdateRequest
from project_access.components.acceptance import GetInviteInput, RespondInviteInput
from project_access.components.invite import CreateInvitesInput
from project_access.context import ServiceContext
from project_access.domain.entities import Actor

router = APIRouter()

OUTCOME_STATUS = {
    "created": status.HTTP_201_CREATED,
    "partially_created": status.HTTP_207_MULTI_STATUS,
    "failed": status.HTTP_403_FORBIDDEN,
}


@router.post("/{project_id}/members/invite")
def create_invites(
    project_id: int,
    req: InviteCreateRequest,
    actor: Actor = Depends(get_actor),
    ctx: ServiceContext = Depends(get_context),
) -> JSONResponse:
    """
    Invite users to a project by user id and/or email.

    201 when every identity was invited, 207 when some failed, 403 when
    none could be invited. The body always lists both outcomes.
    """
    inp = CreateInvitesInput(
        project_id=project_id,
        role=req.role,
        actor=actor,
        user_ids=tuple(req.user_ids or ()),
        emails=tuple(req.emails or ()),
    )
    result = ctx.invite_manager.create_invites(inp)
    return JSONResponse(status_code=OUTCOME_STATUS[result.outcome], content=result.response)


@router.get("/{project_id}/members/invite/{invite_id}")
def get_invite(
    project_id: int,
    invite_id: int,
    actor: Actor = Depends(get_actor),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    """Get one invite; non-privileged callers only see their own."""
    result = ctx.acceptance.get_invite(
        GetInviteInput(project_id=project_id, invite_id=invite_id, actor=actor)
    )
    return result.response


@router.patch("/{project_id}/members/invite/{invite_id}")
def respond_to_invite(
    project_id: int,
    invite_id: int,
    req: InviteUpdateRequest,
    actor: Actor = Depends(get_actor),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    """Accept or reject an invite."""
    result = ctx.acceptance.respond(
        RespondInviteInput(
            project_id=project_id,
            invite_id=invite_id,
            actor=actor,
            decision=req.status,
        )
    )
    return result.response
