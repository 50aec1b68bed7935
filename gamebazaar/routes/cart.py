from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Cart, CartItem, Game, User
from ..schemas import CartItemIn, CartItemUpdate, CartOut
from .deps import get_current_user

router = APIRouter()


def _get_or_create_cart(db: Session, user: User) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if cart:
        return cart
    cart = Cart(user_id=user.id, total_price=0.0)
    db.add(cart)
    db.commit()
    db.refresh(cart)
    return cart


def _get_cart(db: Session, user: User) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


def _ensure_stock(game: Game, quantity: int) -> None:
    if (game.stock or 0) < quantity:
        raise HTTPException(status_code=400, detail="Not enough stock available")


def _cart_response(db: Session, cart: Cart) -> dict:
    cart.recalculate()
    db.commit()
    db.refresh(cart)
    return {"success": True, "data": CartOut.model_validate(cart)}


@router.get("")
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_or_create_cart(db, current_user)
    return {"success": True, "data": CartOut.model_validate(cart)}


@router.post("")
def add_item(
    payload: CartItemIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    game = db.query(Game).filter(Game.id == payload.game_id).first()
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    _ensure_stock(game, payload.quantity)

    cart = _get_or_create_cart(db, current_user)
    existing = next((item for item in cart.items if item.game_id == game.id), None)
    if existing:
        existing.quantity = payload.quantity
        existing.price = game.effective_price
    else:
        cart.items.append(
            CartItem(game_id=game.id, quantity=payload.quantity, price=game.effective_price)
        )
    return _cart_response(db, cart)


@router.put("/{item_id}")
def update_item(
    item_id: str,
    payload: CartItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user)
    item = next((entry for entry in cart.items if entry.id == item_id), None)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")
    game = db.query(Game).filter(Game.id == item.game_id).first()
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    _ensure_stock(game, payload.quantity)

    item.quantity = payload.quantity
    return _cart_response(db, cart)


@router.delete("/{item_id}")
def remove_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user)
    item = next((entry for entry in cart.items if entry.id == item_id), None)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")
    cart.items.remove(item)
    return _cart_response(db, cart)


@router.delete("")
def clear_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user)
    cart.items = []
    return _cart_response(db, cart)
