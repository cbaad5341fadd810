from fastapi import FastAPI, Request
from starlette.responses import Response

from app.config import settings

ROBOTS_HEADER = "noindex, nofollow, noarchive"


def install_security_headers(app: FastAPI) -> None:
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Robots-Tag"] = ROBOTS_HEADER
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Evidence photos may be cached by the browser; API payloads never.
        if not request.url.path.startswith(settings.upload_public_prefix + "/"):
            response.headers["Cache-Control"] = "no-store"
        return response
