"""mk_trade REST API — trades, offers and their transitions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_user_id
from src.mk_trade.application.schemas import PostOfferRequest, PostTradeRequest
from src.mk_trade.application.service import TradeService

router = APIRouter(prefix="/trades", tags=["trades"])

_service = TradeService()


def _wrap(data: object, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_trades(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    offerer_id: str | None = Query(None, description="Only trades posted by this user"),
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    trades = await _service.list_active_trades(db, offerer_id, limit)
    return _wrap([t.model_dump() for t in trades], request)


@router.post("", status_code=201)
async def post_trade(
    body: PostTradeRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.post_trade(db, user_id, body.item_id)
    return _wrap(data.model_dump(), request)


@router.get("/items/{item_id}/offers")
async def offers_for_item(
    item_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    offers = await _service.offers_for_item(db, item_id)
    return _wrap([o.model_dump() for o in offers], request)


@router.get("/{trade_id}")
async def get_trade(
    trade_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_trade(db, trade_id)
    return _wrap(data.model_dump(), request)


@router.delete("/{trade_id}")
async def cancel_trade(
    trade_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_trade(db, user_id, trade_id)
    return _wrap(data.model_dump(), request)


@router.get("/{trade_id}/offers")
async def list_offers(
    trade_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    offers = await _service.list_offers(db, trade_id)
    return _wrap([o.model_dump() for o in offers], request)


@router.post("/{trade_id}/offers", status_code=201)
async def post_offer(
    trade_id: str,
    body: PostOfferRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.post_offer(db, user_id, trade_id, body.item_id)
    return _wrap(data.model_dump(), request)


@router.post("/offers/{offer_id}/accept")
async def accept_offer(
    offer_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.accept_offer(db, user_id, offer_id)
    return _wrap(data.model_dump(), request)


@router.post("/offers/{offer_id}/reject")
async def reject_offer(
    offer_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject_offer(db, user_id, offer_id)
    return _wrap(data.model_dump(), request)


@router.post("/offers/{offer_id}/cancel")
async def cancel_offer(
    offer_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_offer(db, user_id, offer_id)
    return _wrap(data.model_dump(), request)
