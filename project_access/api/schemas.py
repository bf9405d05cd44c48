from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class InviteCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_ids: list[int] | None = Field(default=None, alias="userIds")
    emails: list[str] | None = None
    role: str


class InviteUpdateRequest(BaseModel):
    status: Literal["accepted", "rejected"]


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None
