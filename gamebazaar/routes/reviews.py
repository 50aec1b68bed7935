from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User
from ..schemas import CommentTextIn, ReviewIn, ReviewUpdateIn
from ..services import reviews as review_service
from .deps import get_current_user, get_current_user_optional

router = APIRouter()


@router.get("")
def list_reviews(
    game: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    reviews = review_service.list_reviews(db, game)
    data = [review_service.serialize_review(review, viewer) for review in reviews]
    return {"success": True, "count": len(data), "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.create_review(db, current_user, payload.game, payload.rating, payload.comment)
    return {"success": True, "data": review_service.serialize_review(review, current_user)}


@router.put("/{review_id}")
def update_review(
    review_id: str,
    payload: ReviewUpdateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.update_review(db, current_user, review_id, payload.rating, payload.comment)
    return {"success": True, "data": review_service.serialize_review(review, current_user)}


@router.delete("/{review_id}")
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review_service.delete_review(db, current_user, review_id)
    return {"success": True, "data": {}}


@router.put("/{review_id}/like")
def like_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.toggle_review_like(db, current_user, review_id)
    return {"success": True, "data": review_service.serialize_review(review, current_user)}


@router.post("/{review_id}/reply", status_code=status.HTTP_201_CREATED)
def add_reply(
    review_id: str,
    payload: CommentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = review_service.add_reply(db, current_user, review_id, payload.comment)
    return {"success": True, "data": review_service.serialize_reply(reply, current_user)}


@router.put("/{review_id}/reply/{reply_id}")
def update_reply(
    review_id: str,
    reply_id: str,
    payload: CommentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = review_service.update_reply(db, current_user, review_id, reply_id, payload.comment)
    return {"success": True, "data": review_service.serialize_reply(reply, current_user)}


@router.delete("/{review_id}/reply/{reply_id}")
def delete_reply(
    review_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.delete_reply(db, current_user, review_id, reply_id)
    return {"success": True, "data": review_service.serialize_review(review, current_user)}


@router.put("/{review_id}/reply/{reply_id}/like")
def like_reply(
    review_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = review_service.toggle_reply_like(db, current_user, review_id, reply_id)
    return {"success": True, "data": review_service.serialize_reply(reply, current_user)}


@router.post("/{review_id}/reply/{reply_id}", status_code=status.HTTP_201_CREATED)
def add_nested_reply(
    review_id: str,
    reply_id: str,
    payload: CommentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    nested = review_service.add_nested_reply(db, current_user, review_id, reply_id, payload.comment)
    return {"success": True, "data": review_service.serialize_nested_reply(nested, current_user)}


@router.put("/{review_id}/reply/{reply_id}/nested/{nested_id}")
def update_nested_reply(
    review_id: str,
    reply_id: str,
    nested_id: str,
    payload: CommentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    nested = review_service.update_nested_reply(
        db, current_user, review_id, reply_id, nested_id, payload.comment
    )
    return {"success": True, "data": review_service.serialize_nested_reply(nested, current_user)}


@router.delete("/{review_id}/reply/{reply_id}/nested/{nested_id}")
def delete_nested_reply(
    review_id: str,
    reply_id: str,
    nested_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = review_service.delete_nested_reply(db, current_user, review_id, reply_id, nested_id)
    return {"success": True, "data": review_service.serialize_reply(reply, current_user)}


@router.put("/{review_id}/reply/{reply_id}/nested/{nested_id}/like")
def like_nested_reply(
    review_id: str,
    reply_id: str,
    nested_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    nested = review_service.toggle_nested_reply_like(db, current_user, review_id, reply_id, nested_id)
    return {"success": True, "data": review_service.serialize_nested_reply(nested, current_user)}
