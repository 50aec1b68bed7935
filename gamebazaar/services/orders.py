"""Checkout and the order lifecycle.

An order moves through ``status`` values crossed with the ``is_paid`` flag:

    pending/unpaid -> pending/paid -> processing -> shipped | delivered | cancelled

Paying keeps ``status`` at ``pending`` so the admin approval queue is simply
"pending and paid". Admins may later set any status value directly.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..core.constants import ORDER_STATUSES, UNAVAILABLE_GAME_TITLE
from ..core.errors import ForbiddenError, InvalidStateError, NotFoundError, OutOfStockError, ValidationError
from ..models import Cart, Game, Order, OrderItem, User
from ..schemas import GameSummaryOut, OrderCreateIn, OrderItemOut, OrderOut, OrderUserOut
from .catalog import invalidate_game_cache
from .permissions import can_moderate
from .stripe_service import stripe_service

logger = logging.getLogger(__name__)


def serialize_order_item(item: OrderItem) -> OrderItemOut:
    game = item.game
    return OrderItemOut(
        game_id=item.game_id,
        game=GameSummaryOut.model_validate(game) if game else None,
        title=game.title if game else UNAVAILABLE_GAME_TITLE,
        quantity=item.quantity,
        price=item.price,
    )


def serialize_order(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        user=OrderUserOut.model_validate(order.user) if order.user else None,
        items=[serialize_order_item(item) for item in order.items],
        shipping_address=order.shipping_address or {},
        payment_method=order.payment_method,
        payment_result=order.payment_result,
        tax_price=order.tax_price or 0,
        shipping_price=order.shipping_price or 0,
        total_price=order.total_price or 0,
        is_paid=bool(order.is_paid),
        paid_at=order.paid_at,
        is_delivered=bool(order.is_delivered),
        delivered_at=order.delivered_at,
        approved_at=order.approved_at,
        approved_by=order.approved_by,
        status=order.status,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def order_snapshot(order: Order) -> dict:
    return serialize_order(order).model_dump(mode="json")


def get_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError(f"Order not found with id of {order_id}")
    return order


def get_order_for(db: Session, viewer: User, order_id: str) -> Order:
    order = get_order(db, order_id)
    if not can_moderate(viewer, order.user_id):
        raise ForbiddenError("Not authorized to view this order")
    return order


def create_order(db: Session, user: User, payload: OrderCreateIn) -> Order:
    """Turn the caller's cart into an order.

    Stock decrements, the order insert and the cart clear share one
    transaction. Each decrement only applies while enough stock remains, so a
    checkout that loses a race raises ``OutOfStockError`` and nothing sticks.
    """
    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if not cart or not cart.items:
        raise ValidationError("No items in cart")

    try:
        lines = []
        for item in cart.items:
            game = db.query(Game).filter(Game.id == item.game_id).first()
            if not game:
                raise NotFoundError(f"Game not found with id of {item.game_id}")
            if (game.stock or 0) < item.quantity:
                raise OutOfStockError(f"Not enough stock for {game.title}")
            lines.append((game, item.quantity))

        order = Order(
            user_id=user.id,
            shipping_address=payload.shipping_address.model_dump(),
            payment_method=payload.payment_method,
            tax_price=payload.tax_price,
            shipping_price=payload.shipping_price,
            status="pending",
            is_paid=False,
        )
        subtotal = 0.0
        for game, quantity in lines:
            result = db.execute(
                update(Game)
                .where(Game.id == game.id, Game.stock >= quantity)
                .values(stock=Game.stock - quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning("Stock check lost for game %s (wanted %s)", game.id, quantity)
                raise OutOfStockError(f"Not enough stock for {game.title}")
            price = game.effective_price
            order.items.append(OrderItem(game_id=game.id, quantity=quantity, price=price))
            subtotal += price * quantity

        order.total_price = round(subtotal + payload.tax_price + payload.shipping_price, 2)
        db.add(order)
        cart.items = []
        cart.recalculate()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    invalidate_game_cache()
    logger.info("Order %s created for user %s (%.2f)", order.id, user.id, order.total_price)
    return order


def pay_order(db: Session, actor: User, order_id: str, payment_result: Optional[dict] = None) -> Order:
    order = get_order(db, order_id)
    if not can_moderate(actor, order.user_id):
        raise ForbiddenError("Not authorized to update this order")
    if order.is_paid:
        raise InvalidStateError("Order is already paid")
    if order.status == "cancelled":
        raise InvalidStateError("Cancelled orders cannot be paid")

    payment_result = payment_result or {}
    if order.payment_method == "stripe" and stripe_service.enabled():
        intent_id = payment_result.get("id")
        if not intent_id or not stripe_service.payment_succeeded(intent_id):
            raise ValidationError("Stripe payment could not be verified")

    order.is_paid = True
    order.paid_at = datetime.utcnow()
    order.payment_result = payment_result
    order.status = "pending"
    db.commit()
    db.refresh(order)
    logger.info("Order %s paid", order.id)
    return order


def approve_order(db: Session, admin: User, order_id: str) -> Order:
    order = get_order(db, order_id)
    if order.status != "pending" or not order.is_paid:
        raise InvalidStateError("Only pending and paid orders can be approved")
    order.status = "processing"
    order.approved_at = datetime.utcnow()
    order.approved_by = {"name": admin.name, "email": admin.email}
    db.commit()
    db.refresh(order)
    logger.info("Order %s approved by %s", order.id, admin.email)
    return order


def update_order_status(db: Session, order_id: str, status: str) -> Order:
    # any known status is accepted, transitions are not restricted here
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid order status: {status}")
    order = get_order(db, order_id)
    previous = order.status
    order.status = status
    if status == "delivered":
        order.is_delivered = True
        order.delivered_at = datetime.utcnow()
    db.commit()
    db.refresh(order)
    logger.info("Order %s status %s -> %s", order.id, previous, status)
    return order


def my_orders(db: Session, user: User) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user.id)
        .order_by(Order.created_at.desc())
        .all()
    )


def all_orders(db: Session) -> list[Order]:
    return db.query(Order).order_by(Order.created_at.desc()).all()


def pending_orders(db: Session) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.status == "pending", Order.is_paid.is_(True))
        .order_by(Order.created_at.desc())
        .all()
    )


def processed_orders(db: Session) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.status.notin_(("pending", "cancelled")))
        .order_by(Order.created_at.desc())
        .all()
    )
