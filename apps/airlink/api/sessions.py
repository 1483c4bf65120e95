from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from airlink.core.dependencies import get_capacity_policy, get_invite_notifier, get_session_registry
from airlink.core.exceptions import SessionNotFound
from airlink.schemas.sessions import (
    InviteRequest,
    InviteResult,
    SessionCreate,
    SessionCreated,
    SessionInfo,
    SessionJoin,
    SessionJoined,
    SessionValidity,
)
from airlink.services.capacity_policy import CapacityPolicy
from airlink.services.invite_notifier import InviteNotifier
from airlink.services.session_registry import SessionRegistry

router = APIRouter(prefix="/api", tags=["sessions"])


@router.post("/create-session", response_model=SessionCreated)
def create_session(
    payload: SessionCreate | None = Body(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionCreated:
    password = payload.password if payload else None
    record = registry.create_session(password)
    return SessionCreated(code=record.code)


@router.post("/join-session", response_model=SessionJoined)
def join_session(
    payload: SessionJoin,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionJoined:
    record = registry.validate_join(payload.code, payload.password)
    return SessionJoined(code=record.code)


@router.get("/sessions/{code}/valid", response_model=SessionValidity)
def session_validity(
    code: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionValidity:
    return SessionValidity(code=code, valid=registry.is_valid(code))


@router.get("/sessions/{code}", response_model=SessionInfo)
def get_session(
    code: str,
    registry: SessionRegistry = Depends(get_session_registry),
    policy: CapacityPolicy = Depends(get_capacity_policy),
) -> SessionInfo:
    record = registry.get(code)
    if record is None:
        raise SessionNotFound(code)
    return SessionInfo(
        code=record.code,
        created_at=record.created_at,
        has_password=record.has_password,
        file_count=record.file_count,
        max_files=policy.max_files_per_session,
        max_file_size=policy.max_file_size_bytes,
        members=record.member_count,
    )


@router.post("/sessions/{code}/invite", response_model=InviteResult)
def invite_to_session(
    code: str,
    payload: InviteRequest,
    notifier: InviteNotifier = Depends(get_invite_notifier),
) -> InviteResult:
    outcome = notifier.send_invite(code, payload.email, note=payload.message)
    return InviteResult(
        code=outcome.code, email=outcome.email, status=outcome.status, error=outcome.error
    )
