from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query

from database import serialize_doc
from deps import admin_only, current_account, get_order_engine, optional_account
from errors import AppError, ForbiddenError, envelope, pagination
from orders import OrderEngine
from schemas import PaymentStatusUpdate, PlaceOrderRequest, StatusUpdate

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("/admin/all-orders")
def all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    engine: OrderEngine = Depends(get_order_engine),
    admin: dict = Depends(admin_only),
):
    orders, total = engine.list_orders(page=page, limit=limit)
    return envelope(
        {
            "orders": [serialize_doc(o) for o in orders],
            "pagination": pagination(page, limit, total, total_key="total_rows"),
        }
    )


@router.get("/admin/all-orders/detail")
def order_detail(
    order_id: str = Query(..., alias="orderId"),
    engine: OrderEngine = Depends(get_order_engine),
    admin: dict = Depends(admin_only),
):
    return envelope(serialize_doc(engine.get_order(order_id)))


@router.post("", status_code=201)
def create_order(
    payload: PlaceOrderRequest,
    user: Optional[dict] = Depends(optional_account),
    engine: OrderEngine = Depends(get_order_engine),
):
    account_id = str(user["_id"]) if user else None
    order = engine.place_order(payload.items, payload.shipping_address, account_id)
    return envelope(serialize_doc(order), message="Order created successfully")


@router.get("/my-orders")
def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    user: dict = Depends(current_account),
    engine: OrderEngine = Depends(get_order_engine),
):
    orders, total = engine.list_orders(str(user["_id"]), page, limit, status)
    return envelope(
        {"orders": [serialize_doc(o) for o in orders], "pagination": pagination(page, limit, total)}
    )


@router.get("/user/{user_id}")
def user_orders(
    user_id: str,
    status: Optional[str] = None,
    engine: OrderEngine = Depends(get_order_engine),
    admin: dict = Depends(admin_only),
):
    orders = engine.orders_for_account(user_id, status)
    return envelope([serialize_doc(o) for o in orders], count=len(orders))


@router.get("/{identifier}")
def get_order(identifier: str, engine: OrderEngine = Depends(get_order_engine)):
    if ObjectId.is_valid(identifier):
        order = engine.get_order(identifier)
    else:
        order = engine.get_order_by_number(identifier)
    return envelope(serialize_doc(order))


@router.patch("/{order_id}/status")
def update_status(
    order_id: str,
    payload: StatusUpdate,
    engine: OrderEngine = Depends(get_order_engine),
    admin: dict = Depends(admin_only),
):
    order = engine.update_status(order_id, payload.status)
    return envelope(serialize_doc(order), message="Order status updated successfully")


@router.patch("/{order_id}/payment-status")
def update_payment_status(
    order_id: str,
    payload: PaymentStatusUpdate,
    engine: OrderEngine = Depends(get_order_engine),
    admin: dict = Depends(admin_only),
):
    order = engine.update_payment_status(order_id, payload.payment_status)
    return envelope(serialize_doc(order), message="Payment status updated successfully")


@router.post("/{order_id}/resend-invoice")
def resend_invoice(
    order_id: str,
    user: dict = Depends(current_account),
    engine: OrderEngine = Depends(get_order_engine),
):
    order = engine.get_order(order_id)
    if user.get("role") != "admin" and order.get("user_id") != str(user["_id"]):
        raise ForbiddenError("Access denied. Insufficient permissions.")
    outcome = engine.resend_invoice(order_id)
    if not outcome.sent:
        raise AppError("Failed to send invoice", 500)
    return envelope(message="Invoice sent successfully")
