"""
Portfolio Backend — Contact Info Route Handlers
=================================================

What:  Public read of the contact info, and the admin endpoints that write,
       reset and audit it.
How:   Thin handlers: authenticate through dependencies, call
       ContactInfoStore, wrap the result in the `{success, ...}` envelope.
Who:   Public profile page (GET /api/contact-info) and the admin dashboard.

Endpoints:
    GET    /api/contact-info                  public
    GET    /api/admin/contact-info            any authenticated caller
    POST   /api/admin/contact-info            canEditProfile → 201 created / 200 updated
    PUT    /api/admin/contact-info            same as POST
    PUT    /api/admin/contact-info/{id}       same as POST; the id is ignored
    DELETE /api/admin/contact-info            admin → reset to neutral values
    DELETE /api/admin/contact-info/{id}       same as DELETE; the id is ignored
    GET    /api/admin/contact-info/history    canEditProfile, newest first
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from portfolio.routes.dependencies import (
    get_contact_info_store,
    get_current_actor,
    require_admin,
    require_capability,
)
from portfolio.schemas.contact_info import (
    ContactInfoResponse,
    ContactInfoUpdate,
    ContactInfoWriteResponse,
    ErrorResponse,
    HistoryAction,
    HistoryResponse,
)
from portfolio.services.auth_service import EDIT_PROFILE, Actor
from portfolio.services.contact_info_store import ContactInfoStore, UpsertResult

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Contact Info"])

_WRITE_RESPONSES = {
    400: {"description": "Invalid contact info", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Insufficient permissions", "model": ErrorResponse},
    409: {"description": "Concurrent modification", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def _write_response(result: UpsertResult, response: Response) -> ContactInfoWriteResponse:
    if result.action is HistoryAction.CREATE:
        response.status_code = status.HTTP_201_CREATED
    return ContactInfoWriteResponse(
        action=result.action.past_tense,
        message=f"Contact info {result.action.past_tense} successfully",
        data=result.contact_info,
    )


async def _read(store: ContactInfoStore) -> ContactInfoResponse:
    current = await store.get_current()
    return ContactInfoResponse(data=current if current.is_set else None)


@router.get(
    "/contact-info",
    response_model=ContactInfoResponse,
    summary="Public contact info",
    description="Returns the current contact info, or `data: null` before it is first set.",
)
async def get_public_contact_info(
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> ContactInfoResponse:
    return await _read(store)


@router.get(
    "/admin/contact-info",
    response_model=ContactInfoResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Contact info (admin view)",
)
async def get_admin_contact_info(
    actor: Actor = Depends(get_current_actor),
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> ContactInfoResponse:
    return await _read(store)


@router.post(
    "/admin/contact-info",
    response_model=ContactInfoWriteResponse,
    responses={
        201: {"description": "First write created the record", "model": ContactInfoWriteResponse},
        **_WRITE_RESPONSES,
    },
    summary="Create or update the contact info",
    description=(
        "Merges the payload over the current record. Omitted fields are kept, "
        "null resets a field, socialLinks is replaced wholesale. Returns 201 on "
        "the first write and 200 afterwards."
    ),
)
async def upsert_contact_info(
    payload: ContactInfoUpdate,
    response: Response,
    actor: Actor = Depends(require_capability(EDIT_PROFILE)),
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> ContactInfoWriteResponse:
    result = await store.upsert(payload, actor)
    return _write_response(result, response)


@router.put(
    "/admin/contact-info",
    response_model=ContactInfoWriteResponse,
    responses=_WRITE_RESPONSES,
    summary="Create or update the contact info (PUT alias)",
)
@router.put(
    "/admin/contact-info/{item_id}",
    response_model=ContactInfoWriteResponse,
    responses=_WRITE_RESPONSES,
    summary="Create or update the contact info (PUT alias, id ignored)",
)
async def replace_contact_info(
    payload: ContactInfoUpdate,
    response: Response,
    actor: Actor = Depends(require_capability(EDIT_PROFILE)),
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> ContactInfoWriteResponse:
    result = await store.upsert(payload, actor)
    return _write_response(result, response)


@router.delete(
    "/admin/contact-info",
    response_model=ContactInfoWriteResponse,
    responses={
        404: {"description": "Contact info was never set", "model": ErrorResponse},
        **_WRITE_RESPONSES,
    },
    summary="Reset the contact info to neutral values",
)
@router.delete(
    "/admin/contact-info/{item_id}",
    response_model=ContactInfoWriteResponse,
    responses={
        404: {"description": "Contact info was never set", "model": ErrorResponse},
        **_WRITE_RESPONSES,
    },
    summary="Reset the contact info (id ignored)",
)
async def reset_contact_info(
    response: Response,
    actor: Actor = Depends(require_admin),
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> ContactInfoWriteResponse:
    result = await store.reset(actor)
    logger.info("Contact info reset by %s", actor.subject)
    return _write_response(result, response)


@router.get(
    "/admin/contact-info/history",
    response_model=HistoryResponse,
    responses={
        400: {"description": "Invalid pagination", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Insufficient permissions", "model": ErrorResponse},
    },
    summary="Contact info change history",
    description=(
        "Snapshots newest first. The total number of snapshots is returned in "
        "the X-Total-Count header."
    ),
)
async def list_contact_info_history(
    response: Response,
    limit: Optional[int] = Query(default=None, description="Maximum snapshots to return (1 to 100)"),
    offset: int = Query(default=0, description="Snapshots to skip (>= 0)"),
    actor: Actor = Depends(require_capability(EDIT_PROFILE)),
    store: ContactInfoStore = Depends(get_contact_info_store),
) -> HistoryResponse:
    view = store.history.list(limit=limit, offset=offset)
    snapshots = await view.all()
    response.headers["X-Total-Count"] = str(await store.history.count())
    return HistoryResponse(data=snapshots)
