from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Game, WishlistEntry, User
from ..schemas import GameSummaryOut, WishlistIn
from .deps import get_current_user

router = APIRouter()


def _wishlist_response(db: Session, user: User) -> dict:
    entries = (
        db.query(WishlistEntry)
        .filter(WishlistEntry.user_id == user.id)
        .order_by(WishlistEntry.created_at.asc())
        .all()
    )
    games = [GameSummaryOut.model_validate(entry.game) for entry in entries if entry.game]
    return {
        "success": True,
        "count": len(games),
        "data": {"user_id": user.id, "games": games},
    }


@router.get("")
def list_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _wishlist_response(db, current_user)


@router.post("")
def add_to_wishlist(
    payload: WishlistIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    game = db.query(Game).filter(Game.id == payload.game_id).first()
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    existing = (
        db.query(WishlistEntry)
        .filter(WishlistEntry.user_id == current_user.id, WishlistEntry.game_id == game.id)
        .first()
    )
    if not existing:
        db.add(WishlistEntry(user_id=current_user.id, game_id=game.id))
        db.commit()
    return _wishlist_response(db, current_user)


@router.get("/check/{game_id}")
def check_in_wishlist(
    game_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exists = (
        db.query(WishlistEntry.id)
        .filter(WishlistEntry.user_id == current_user.id, WishlistEntry.game_id == game_id)
        .first()
        is not None
    )
    return {"success": True, "data": {"in_wishlist": exists}}


@router.delete("/{game_id}")
def remove_from_wishlist(
    game_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = (
        db.query(WishlistEntry)
        .filter(WishlistEntry.user_id == current_user.id, WishlistEntry.game_id == game_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Game not in wishlist")
    db.delete(entry)
    db.commit()
    return _wishlist_response(db, current_user)


@router.delete("")
def clear_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db.query(WishlistEntry).filter(WishlistEntry.user_id == current_user.id).delete(
        synchronize_session=False
    )
    db.commit()
    return _wishlist_response(db, current_user)
