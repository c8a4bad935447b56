"""mk_inventory REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_user_id, get_optional_user_id
from src.mk_inventory.application.schemas import SyncInventoryRequest
from src.mk_inventory.application.service import InventoryService

router = APIRouter(prefix="/inventory", tags=["inventory"])

_service = InventoryService()


@router.get("/me")
async def my_inventory(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user_inventory(db, user_id, user_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/users/{owner_id}")
async def user_inventory(
    owner_id: str,
    viewer_id: Annotated[str | None, Depends(get_optional_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user_inventory(db, viewer_id, owner_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/items/{item_id}")
async def get_item(
    item_id: str,
    viewer_id: Annotated[str | None, Depends(get_optional_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_item(db, item_id, viewer_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/sync")
async def sync_inventory(
    body: SyncInventoryRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.sync_inventory(
        db, user_id, [item.model_dump() for item in body.items]
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
