"""
Link endpoints.

Listing is public.  Creating requires a bearer token; the token's email
becomes the link owner.  Update and delete check existence before the
token, so a missing id is always 404, and then require the caller to be
the owner.

``PUT /links`` and ``DELETE /links`` (id in body or query) are kept for
clients written against the earlier serverless deployment.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from linkshelf_api.app.api.deps import get_link_service
from linkshelf_api.app.core.errors import BadRequest
from linkshelf_api.app.core.security import get_current_user, get_optional_user
from linkshelf_api.app.schemas.link import (
    Ack,
    LinkCreate,
    LinkDeleteById,
    LinkListResponse,
    LinkResponse,
    LinkUpdate,
    LinkUpdateById,
)
from linkshelf_api.app.services.link_service import LinkService

router = APIRouter()


@router.get("/links", response_model=LinkListResponse)
async def list_links(
    category: Optional[str] = Query(None),
    service: LinkService = Depends(get_link_service),
) -> LinkListResponse:
    """Return all links ordered by creation time.

    An empty ``category`` is the same as no filter.
    """
    items = await service.list_links(category or None)
    return LinkListResponse(items=items)


@router.post("/links", response_model=LinkResponse)
async def create_link(
    payload: Optional[LinkCreate] = None,
    owner: str = Depends(get_current_user),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.create_link(payload or LinkCreate(), owner)
    return LinkResponse(link=link)


@router.put("/links/{link_id}", response_model=LinkResponse)
async def update_link(
    link_id: int,
    payload: Optional[LinkUpdate] = None,
    identity: Optional[str] = Depends(get_optional_user),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    link = await service.update_link(link_id, payload or LinkUpdate(), identity)
    return LinkResponse(link=link)


@router.delete("/links/{link_id}", response_model=Ack)
async def delete_link(
    link_id: int,
    identity: Optional[str] = Depends(get_optional_user),
    service: LinkService = Depends(get_link_service),
) -> Ack:
    await service.delete_link(link_id, identity)
    return Ack()


@router.put("/links", response_model=LinkResponse)
async def update_link_by_body(
    payload: Optional[LinkUpdateById] = None,
    identity: Optional[str] = Depends(get_optional_user),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    if payload is None or payload.id is None:
        raise BadRequest("missing id")
    link = await service.update_link(payload.id, payload, identity)
    return LinkResponse(link=link)


@router.delete("/links", response_model=Ack)
async def delete_link_by_query(
    link_id: Optional[int] = Query(None, alias="id"),
    payload: Optional[LinkDeleteById] = None,
    identity: Optional[str] = Depends(get_optional_user),
    service: LinkService = Depends(get_link_service),
) -> Ack:
    if link_id is None and payload is not None:
        link_id = payload.id
    if link_id is None:
        raise BadRequest("missing id")
    await service.delete_link(link_id, identity)
    return Ack()
