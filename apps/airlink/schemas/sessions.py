"""Schemas for the session HTTP surface."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SessionCreate(BaseModel):
    password: Optional[str] = None


class SessionCreated(BaseModel):
    code: str


class SessionJoin(BaseModel):
    code: str = Field(min_length=1, max_length=32)
    password: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value):  # noqa: ANN001
        # Older clients post the code as a number.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class SessionJoined(BaseModel):
    ok: bool = True
    code: str


class SessionValidity(BaseModel):
    code: str
    valid: bool


class SessionInfo(BaseModel):
    code: str
    created_at: datetime
    has_password: bool
    file_count: int
    max_files: int
    max_file_size: int
    members: int


class InviteRequest(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=320)
    message: Optional[str] = Field(default=None, max_length=2000)


class InviteResult(BaseModel):
    code: str
    email: str
    status: str
    error: Optional[str] = None
