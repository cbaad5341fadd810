from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.logging_config import configure_logging
from app.routers import auth, catalog, verification
from app.security.csrf import install_csrf_cookie_middleware
from app.security.headers import install_security_headers
from app.services.errors import (
    AlreadyVerified,
    DuplicateEntity,
    EntityNotFound,
    EvidenceUploadFailed,
    InvalidEntity,
    InvalidScan,
    ReceivingError,
    SerialNotFound,
    StoreUnavailable,
)
from app.services.store_factory import selected_store_kind

configure_logging(settings.log_level)
# Resolve the entity store once; an unknown ENTITY_STORE stops the app here.
selected_store_kind()

app = FastAPI(title='Equipment Receiving')

ERROR_STATUS = {
    SerialNotFound: status.HTTP_404_NOT_FOUND,
    AlreadyVerified: status.HTTP_409_CONFLICT,
    InvalidScan: status.HTTP_400_BAD_REQUEST,
    InvalidEntity: status.HTTP_400_BAD_REQUEST,
    EvidenceUploadFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    EntityNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateEntity: status.HTTP_409_CONFLICT,
}


def _error_body(exc) -> dict:
    return {'error': exc.kind, 'title': exc.title, 'message': getattr(exc, 'message', str(exc))}


@app.exception_handler(ReceivingError)
async def receiving_error_handler(request: Request, exc: ReceivingError):
    status_code = next(
        (code for error_cls, code in ERROR_STATUS.items() if isinstance(exc, error_cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status_code, content=_error_body(exc))


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_error_body(exc))


install_security_headers(app)
install_csrf_cookie_middleware(app)

app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(verification.router)

app.mount(
    settings.upload_public_prefix,
    StaticFiles(directory=str(Path(settings.upload_dir)), check_dir=False),
    name='uploads',
)


@app.get('/robots.txt', response_class=PlainTextResponse)
def robots_txt() -> str:
    return 'User-agent: *\nDisallow: /\n'


@app.get('/health')
def health() -> dict:
    return {'status': 'ok', 'entity_store': selected_store_kind()}
