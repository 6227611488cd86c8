"""Order router - FastAPI endpoints for the order lifecycle"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...services.job_queue import get_job_queue
from ...services.payment_service import PaymentGateway, get_payment_gateway
from .schemas import (
    AdminOrderUpdate,
    OrderCreate,
    OrderListResponse,
    OrderMessageResponse,
    OrderResponse,
    OrderStatus,
    OrderType,
    OrderUpdate,
    PaymentRequest,
    PaymentStatus,
)
from .service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


def get_order_service(
    db: Session = Depends(get_db),
    queue=Depends(get_job_queue),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db, queue, gateway)


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================


@router.get("/admin", response_model=OrderListResponse)
async def admin_list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    paymentStatus: Optional[PaymentStatus] = Query(None),
    orderType: Optional[OrderType] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    sort: Literal["newest", "oldest", "price_high", "price_low"] = Query("newest"),
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    orders, pagination = service.admin_list_orders(
        page, limit, status, paymentStatus, orderType, search, sort
    )
    return OrderListResponse(
        orders=[OrderResponse.from_order(o) for o in orders], pagination=pagination
    )


@router.get("/admin/{order_id}", response_model=OrderResponse)
async def admin_get_order(
    order_id: int,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.from_order(service.admin_get_order(order_id))


@router.put("/admin/{order_id}", response_model=OrderMessageResponse)
async def admin_update_order(
    order_id: int,
    data: AdminOrderUpdate,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Update status, payment, notes or the style/material snapshot (total is recomputed)"""
    order = await service.admin_update_order(order_id, data)
    return OrderMessageResponse(message="Order updated", order=OrderResponse.from_order(order))


@router.delete("/admin/{order_id}", status_code=204)
async def admin_delete_order(
    order_id: int,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    await service.admin_delete_order(order_id)
    return Response(status_code=204)


# ============================================================================
# CUSTOMER OPERATIONS
# ============================================================================


@router.post("", response_model=OrderMessageResponse, status_code=201)
async def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Place an order from catalog ids or inline custom style/material"""
    order = await service.create_order(data, current_user)
    return OrderMessageResponse(
        message="Order placed successfully", order=OrderResponse.from_order(order)
    )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    paymentStatus: Optional[PaymentStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    orders, pagination = service.list_orders(current_user, page, limit, status, paymentStatus)
    return OrderListResponse(
        orders=[OrderResponse.from_order(o) for o in orders], pagination=pagination
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.from_order(service.get_order(order_id, current_user))


@router.get("/{order_id}/receipt")
async def download_receipt(
    order_id: int,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """PDF receipt for one of the caller's orders"""
    pdf_bytes = service.get_receipt(order_id, current_user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="sybertailor-receipt-{order_id}.pdf"'},
    )


@router.post("/{order_id}/pay", response_model=OrderMessageResponse)
async def pay_order(
    order_id: int,
    data: PaymentRequest,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Confirm payment with a gateway reference. A failed verification is not an error."""
    order = await service.pay_order(order_id, data.reference, current_user)
    message = "Payment confirmed" if order.payment_status == "paid" else "Payment verification failed"
    return OrderMessageResponse(message=message, order=OrderResponse.from_order(order))


@router.put("/{order_id}", response_model=OrderMessageResponse)
async def update_order(
    order_id: int,
    data: OrderUpdate,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_order(order_id, data, current_user)
    return OrderMessageResponse(message="Order updated", order=OrderResponse.from_order(order))


@router.delete("/{order_id}", response_model=OrderMessageResponse)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Cancel (soft) an order that hasn't been started yet"""
    order = await service.cancel_order(order_id, current_user)
    return OrderMessageResponse(message="Order cancelled", order=OrderResponse.from_order(order))
