from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import Principal, Role
from app.config import settings
from app.models import Principal as PrincipalModel
from app.models import WebSession

TOKEN_BYTES = 48


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _session_expiry(now: datetime | None = None) -> datetime:
    return (now or _now()) + timedelta(minutes=settings.session_ttl_minutes)


def _find_session(db: Session, token: str) -> WebSession | None:
    return db.execute(select(WebSession).where(WebSession.session_token == token)).scalar_one_or_none()


def _is_live(web_session: WebSession, now: datetime) -> bool:
    expires_at = web_session.expires_at
    if expires_at.tzinfo is None:
        # SQLite hands back naive timestamps.
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return web_session.revoked_at is None and expires_at > now


def create_web_session(db: Session, principal_id: int, *, ip: str | None, user_agent: str | None) -> str:
    token = secrets.token_urlsafe(TOKEN_BYTES)
    db.add(
        WebSession(
            session_token=token,
            principal_id=principal_id,
            ip=ip,
            user_agent=user_agent,
            expires_at=_session_expiry(),
        )
    )
    db.flush()
    return token


def revoke_web_session(db: Session, token: str) -> bool:
    web_session = _find_session(db, token)
    if web_session is None or web_session.revoked_at is not None:
        return False
    web_session.revoked_at = _now()
    return True


def load_principal_from_token(db: Session, token: str | None) -> Principal | None:
    """Resolve a session cookie to its principal, extending the session on every hit."""
    if not token:
        return None

    web_session = _find_session(db, token)
    now = _now()
    if web_session is None or not _is_live(web_session, now):
        return None

    principal = db.get(PrincipalModel, web_session.principal_id)
    if principal is None:
        return None

    web_session.last_seen_at = now
    web_session.expires_at = _session_expiry(now)
    return Principal(
        id=principal.id,
        username=principal.username,
        role=Role(principal.role.value),
        active=principal.active,
    )
