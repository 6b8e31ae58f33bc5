"""
Order API routes
"""
from datetime import datetime
from fastapi import APIRouter, Body, Depends, Query, Request
from typing import Optional

from api.deps import get_current_user, require_admin
from data.models.user import User
from models.order import (
    CancelRequest,
    NoteRequest,
    OrderCreateRequest,
    StatusUpdateRequest,
    TrackingRequest,
)
from services.order_service import order_service
from utils.response_utils import success_response

router = APIRouter()

@router.get("")
async def get_all_orders(
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    fulfillment_status: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    min_total: Optional[float] = Query(None, ge=0),
    search: Optional[str] = Query(None, description="Matches order number, customer email or name"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    admin: User = Depends(require_admin),
):
    result = await order_service.get_all_orders(
        status=status,
        payment_status=payment_status,
        fulfillment_status=fulfillment_status,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        min_total=min_total,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success_response(result["orders"], pagination=result["pagination"])

@router.get("/my")
async def get_my_orders(
    status: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
):
    result = await order_service.get_user_orders(user, status=status, page=page, limit=limit)
    return success_response(result["orders"], pagination=result["pagination"])

@router.get("/dashboard")
async def get_orders_dashboard(admin: User = Depends(require_admin)):
    return success_response(await order_service.get_orders_dashboard())

@router.get("/stats")
async def get_sales_stats(period: str = Query("DAILY", description="DAILY, WEEKLY or MONTHLY"),
                          admin: User = Depends(require_admin)):
    return success_response(await order_service.get_sales_stats(period))

@router.get("/{order_id}")
async def get_order_by_id(order_id: str, user: User = Depends(get_current_user)):
    return success_response(await order_service.get_order_by_id(order_id, user))

@router.post("", status_code=201)
async def create_order(request: OrderCreateRequest, req: Request, user: User = Depends(get_current_user)):
    client_ip = req.client.host if req.client else None
    result = await order_service.create_order(request, user, ip_address=client_ip)
    return success_response(result, message="Order created successfully")

@router.put("/{order_id}/status")
async def update_order_status(order_id: str, request: StatusUpdateRequest,
                              admin: User = Depends(require_admin)):
    result = await order_service.update_order_status(order_id, request.status, request.comment, admin)
    return success_response(result, message="Order status updated successfully")

@router.put("/{order_id}/tracking")
async def add_order_tracking(order_id: str, request: TrackingRequest, admin: User = Depends(require_admin)):
    result = await order_service.add_order_tracking(order_id, request, admin)
    return success_response(result, message="Tracking information added successfully")

@router.put("/{order_id}/cancel")
async def cancel_order(order_id: str, request: Optional[CancelRequest] = Body(None),
                       user: User = Depends(get_current_user)):
    reason = request.reason if request else None
    result = await order_service.cancel_order(order_id, reason, user)
    return success_response(result, message="Order cancelled successfully")

@router.post("/{order_id}/note")
async def add_order_note(order_id: str, request: NoteRequest, admin: User = Depends(require_admin)):
    result = await order_service.add_order_note(order_id, request, admin)
    return success_response(result, message="Note added successfully")
