"""mk_marketplace REST API — listings, purchase, limits."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import get_db_session
from src.mk_common.redis_client import get_redis
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_user_id
from src.mk_gateway.middleware.inflight_guard import inflight_guard
from src.mk_marketplace.application.purchase import PurchaseService
from src.mk_marketplace.application.schemas import (
    CreateListingRequest,
    PurchaseRequest,
    UpdatePriceRequest,
)
from src.mk_marketplace.application.service import ListingService
from src.mk_risk.application.quota import QuotaTracker

router = APIRouter(prefix="/marketplace", tags=["marketplace"])

_listings = ListingService()
_purchases = PurchaseService()
_quota = QuotaTracker()


def _wrap(data: dict, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/limits")
async def get_limits(request: Request) -> ApiResponse:
    return _wrap(_quota.policy().model_dump(), request)


@router.get("/usage")
async def get_usage(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _quota.usage(db, user_id)
    return _wrap(data.model_dump(), request)


@router.get("/listings")
async def browse_listings(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _listings.browse(db, cursor, limit)
    return _wrap(data.model_dump(), request)


@router.get("/listings/mine")
async def my_listings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str | None = Query(None, description="Filter by ListingStatus"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _listings.my_listings(db, user_id, status, cursor, limit)
    return _wrap(data.model_dump(), request)


@router.get("/listings/{listing_id}")
async def get_listing(
    listing_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _listings.get_listing(db, listing_id)
    return _wrap(data.model_dump(), request)


@router.post("/listings", status_code=201)
async def create_listing(
    body: CreateListingRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _listings.list_for_sale(db, user_id, body.item_id, body.price)
    return _wrap(data.model_dump(), request)


@router.delete("/listings/{listing_id}")
async def cancel_listing(
    listing_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _listings.cancel_listing(db, user_id, listing_id)
    return _wrap(data.model_dump(), request)


@router.patch("/listings/{listing_id}/price")
async def update_price(
    listing_id: str,
    body: UpdatePriceRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _listings.update_price(db, user_id, listing_id, body.price)
    return _wrap(data.model_dump(), request)


@router.post("/listings/{listing_id}/purchase")
async def purchase_listing(
    listing_id: str,
    body: PurchaseRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    redis = await get_redis()
    async with inflight_guard(redis, f"purchase:{user_id}", body.idempotency_key):
        data = await _purchases.purchase(db, user_id, listing_id, body.idempotency_key)
    return _wrap(data.model_dump(), request)
