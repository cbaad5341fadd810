from collections.abc import Iterator

from fastapi import Depends, Request

from app.auth import Principal, get_current_principal
from app.context import RequestContext
from app.services.entity_store import EntityStore
from app.services.evidence_storage import EvidenceStorage, get_evidence_storage
from app.services.store_factory import open_entity_store


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    if request.client:
        return request.client.host
    return None


def get_entity_store() -> Iterator[EntityStore]:
    with open_entity_store() as store:
        yield store


def get_evidence() -> EvidenceStorage:
    return get_evidence_storage()


def get_request_context(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> RequestContext:
    return RequestContext(principal_id=principal.id, username=principal.username, ip=get_client_ip(request))
