from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.context import RequestContext
from app.models import AuditLog, AuthEvent

logger = logging.getLogger(__name__)


def log_auth_event(
    db: Session,
    *,
    attempted_username: str,
    success: bool,
    ip: str | None,
    user_agent: str | None,
    principal_id: int | None = None,
    failure_reason: str | None = None,
) -> None:
    if success:
        logger.info('Login succeeded for %s from %s', attempted_username, ip)
    else:
        logger.warning('Login rejected for %s from %s: %s', attempted_username, ip, failure_reason)
    db.add(
        AuthEvent(
            attempted_username=attempted_username,
            success=success,
            failure_reason=failure_reason,
            principal_id=principal_id,
            ip=ip,
            user_agent=user_agent,
        )
    )


def log_audit(db: Session, context: RequestContext, action: str, **metadata) -> None:
    """Stage an audit row for the acting principal; the caller owns the commit."""
    db.add(
        AuditLog(
            actor_principal_id=context.principal_id,
            action=action,
            ip=context.ip,
            meta={'actor': context.actor, **metadata},
        )
    )
