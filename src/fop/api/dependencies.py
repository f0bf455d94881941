from __future__ import annotations

from fastapi import Header, HTTPException, status

from fop.domain.auth.guard import Actor, ActorRole
from fop.domain.common.ids import SessionId, UserId

ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"
SESSION_ID_HEADER = "X-Session-Id"
MAX_ACTOR_ID_LENGTH = 50


def current_actor(
    actor_id: str | None = Header(default=None, alias=ACTOR_ID_HEADER),
    actor_role: str | None = Header(default=None, alias=ACTOR_ROLE_HEADER),
) -> Actor:
    # Identity is asserted by the upstream gateway; this service only reads it.
    if not actor_id or not actor_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing actor")
    if len(actor_id.strip()) > MAX_ACTOR_ID_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="actor id too long")
    try:
        role = ActorRole((actor_role or ActorRole.CUSTOMER.value).strip().lower())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"unknown actor role: {actor_role}",
        ) from exc
    return Actor(actor_id=UserId(actor_id.strip()), role=role)


def current_session(
    session_id: str | None = Header(default=None, alias=SESSION_ID_HEADER),
) -> SessionId:
    if not session_id or not session_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing session id")
    return SessionId(session_id.strip())
