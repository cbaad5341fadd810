from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import Principal, get_current_principal
from app.config import settings
from app.context import RequestContext
from app.db import get_db
from app.dependencies import get_client_ip
from app.models import Principal as PrincipalModel
from app.schemas import LoginIn, PrincipalOut
from app.security.csrf import verify_csrf
from app.security.passwords import verify_password
from app.security.sessions import create_web_session, load_principal_from_token, revoke_web_session
from app.services.audit_service import log_audit, log_auth_event

router = APIRouter(prefix='/auth', tags=['auth'])


def _reject(db: Session, *, username: str, reason: str, principal_id: int | None, ip: str | None, user_agent: str | None):
    log_auth_event(
        db,
        attempted_username=username,
        success=False,
        failure_reason=reason,
        principal_id=principal_id,
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid username or password')


@router.post('/login', response_model=PrincipalOut, dependencies=[Depends(verify_csrf)])
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    username = payload.username.strip()
    ip = get_client_ip(request)
    user_agent = request.headers.get('user-agent')

    principal = db.execute(select(PrincipalModel).where(PrincipalModel.username == username)).scalar_one_or_none()
    if not principal:
        _reject(db, username=username, reason='UNKNOWN_USERNAME', principal_id=None, ip=ip, user_agent=user_agent)
    if not principal.active:
        _reject(db, username=username, reason='INACTIVE_PRINCIPAL', principal_id=principal.id, ip=ip, user_agent=user_agent)
    if not verify_password(payload.password, principal.password_hash):
        _reject(db, username=username, reason='BAD_PASSWORD', principal_id=principal.id, ip=ip, user_agent=user_agent)

    token = create_web_session(db, principal.id, ip=ip, user_agent=user_agent)
    context = RequestContext(principal_id=principal.id, username=principal.username, ip=ip)
    log_auth_event(
        db,
        attempted_username=username,
        success=True,
        failure_reason=None,
        principal_id=principal.id,
        ip=ip,
        user_agent=user_agent,
    )
    log_audit(db, context, 'AUTH_LOGIN')
    db.commit()

    response = JSONResponse(
        PrincipalOut(id=principal.id, username=principal.username, role=principal.role.value).model_dump(by_alias=True)
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        max_age=settings.session_ttl_minutes * 60,
    )
    return response


@router.post('/logout', status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_csrf)])
def logout(request: Request, db: Session = Depends(get_db)):
    token = request.cookies.get(settings.session_cookie_name)
    principal = load_principal_from_token(db, token)
    revoked = revoke_web_session(db, token) if token else False

    context = RequestContext(
        principal_id=principal.id if principal else None,
        username=principal.username if principal else None,
        ip=get_client_ip(request),
    )
    log_audit(db, context, 'AUTH_LOGOUT', session_revoked=revoked)
    db.commit()

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get('/me', response_model=PrincipalOut)
def me(principal: Principal = Depends(get_current_principal)):
    return PrincipalOut(id=principal.id, username=principal.username, role=principal.role.value)
