from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db


class Role(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    OPERATOR = "OPERATOR"
    VIEWER = "VIEWER"


PROJECT_ADMINS = (Role.ADMIN,)
CATALOG_EDITORS = (Role.ADMIN, Role.MANAGER)
VERIFIERS = (Role.ADMIN, Role.MANAGER, Role.OPERATOR)


@dataclass
class Principal:
    id: int
    username: str
    role: Role
    active: bool


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    from app.security.sessions import load_principal_from_token

    principal = load_principal_from_token(db, request.cookies.get(settings.session_cookie_name))
    db.commit()
    if not principal:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not principal.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    request.state.principal = principal
    return principal


def require_role(*allowed: Role):
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
        return principal

    return _dep
