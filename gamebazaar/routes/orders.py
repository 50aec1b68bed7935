from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Order, User
from ..schemas import OrderCreateIn, OrderPayIn, OrderStatusIn
from ..services import orders as order_service
from ..services.notifications import send_order_status_notification
from .deps import get_current_user, require_admin_user

router = APIRouter()


def _notify(background_tasks: BackgroundTasks, order: Order, new_status: str) -> None:
    background_tasks.add_task(
        send_order_status_notification,
        order_service.order_snapshot(order),
        new_status,
    )


def _list_response(orders: list[Order]) -> dict:
    data = [order_service.serialize_order(order) for order in orders]
    return {"success": True, "count": len(data), "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.create_order(db, current_user, payload)
    _notify(background_tasks, order, "placed")
    return {"success": True, "data": order_service.serialize_order(order)}


@router.get("")
def list_orders(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    return _list_response(order_service.all_orders(db))


@router.get("/myorders")
def my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _list_response(order_service.my_orders(db, current_user))


@router.get("/pending")
def pending_orders(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    return _list_response(order_service.pending_orders(db))


@router.get("/processed")
def processed_orders(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    return _list_response(order_service.processed_orders(db))


@router.get("/{order_id}")
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order_for(db, current_user, order_id)
    return {"success": True, "data": order_service.serialize_order(order)}


@router.put("/{order_id}/pay")
def pay_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[OrderPayIn] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment_result = payload.payment_result.model_dump() if payload and payload.payment_result else None
    order = order_service.pay_order(db, current_user, order_id, payment_result)
    _notify(background_tasks, order, "pending")
    return {"success": True, "data": order_service.serialize_order(order)}


@router.put("/{order_id}/approve")
def approve_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin_user),
):
    order = order_service.approve_order(db, admin, order_id)
    _notify(background_tasks, order, "processing")
    return {"success": True, "data": order_service.serialize_order(order)}


@router.put("/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: OrderStatusIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin_user),
):
    order = order_service.update_order_status(db, order_id, payload.status)
    _notify(background_tasks, order, order.status)
    return {"success": True, "data": order_service.serialize_order(order)}
