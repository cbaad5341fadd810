from __future__ import annotations

import secrets

from fastapi import HTTPException, Request, status

from app.config import settings

CSRF_COOKIE_NAME = 'csrf_token'
CSRF_HEADER_NAME = 'x-csrf-token'
SAFE_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS'})


def install_csrf_cookie_middleware(app) -> None:
    """Issue a readable CSRF cookie and echo it in a response header for API clients."""

    @app.middleware('http')
    async def csrf_cookie_middleware(request: Request, call_next):
        cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
        csrf_token = cookie_token or secrets.token_urlsafe(24)
        request.state.csrf_token = csrf_token

        response = await call_next(request)
        response.headers[CSRF_HEADER_NAME] = csrf_token
        if cookie_token != csrf_token:
            response.set_cookie(
                key=CSRF_COOKIE_NAME,
                value=csrf_token,
                httponly=False,
                secure=settings.session_cookie_secure,
                samesite=settings.session_cookie_samesite,
            )
        return response


async def verify_csrf(request: Request) -> None:
    """Double-submit check: the header must repeat the cookie value."""
    if request.method in SAFE_METHODS:
        return

    header_token = request.headers.get(CSRF_HEADER_NAME)
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    if not header_token or not cookie_token or not secrets.compare_digest(header_token, cookie_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Invalid CSRF token')
