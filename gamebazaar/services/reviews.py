import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..models import Game, Review, ReviewNestedReply, ReviewReply, User
from ..schemas import NestedReplyOut, ReviewOut, ReviewReplyOut
from .catalog import recompute_game_rating
from .discussion import author_out, ensure_can_delete, ensure_can_edit, find_child, require_text, toggle_like
from .permissions import permission_flags

logger = logging.getLogger(__name__)


def serialize_nested_reply(node: ReviewNestedReply, viewer: Optional[User]) -> NestedReplyOut:
    return NestedReplyOut(
        id=node.id,
        user=author_out(node.user),
        comment=node.comment,
        likes=list(node.likes or []),
        created_at=node.created_at,
        **permission_flags(viewer, node.user_id),
    )


def serialize_reply(reply: ReviewReply, viewer: Optional[User]) -> ReviewReplyOut:
    return ReviewReplyOut(
        id=reply.id,
        user=author_out(reply.user),
        comment=reply.comment,
        likes=list(reply.likes or []),
        created_at=reply.created_at,
        nested_replies=[serialize_nested_reply(item, viewer) for item in reply.nested_replies],
        **permission_flags(viewer, reply.user_id),
    )


def serialize_review(review: Review, viewer: Optional[User]) -> ReviewOut:
    return ReviewOut(
        id=review.id,
        user=author_out(review.user),
        game_id=review.game_id,
        rating=review.rating,
        comment=review.comment,
        likes=list(review.likes or []),
        replies=[serialize_reply(reply, viewer) for reply in review.replies],
        created_at=review.created_at,
        updated_at=review.updated_at,
        **permission_flags(viewer, review.user_id),
    )


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


def list_reviews(db: Session, game_id: Optional[str]) -> list[Review]:
    if not game_id:
        raise ValidationError("Please provide a game ID")
    return (
        db.query(Review)
        .filter(Review.game_id == game_id)
        .order_by(Review.created_at.desc())
        .all()
    )


def get_review(db: Session, review_id: str) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise NotFoundError(f"Review not found with id of {review_id}")
    return review


def create_review(db: Session, user: User, game_id: str, rating: int, comment: Optional[str]) -> Review:
    text = require_text(comment)
    rating = _validate_rating(rating)
    if not db.query(Game.id).filter(Game.id == game_id).first():
        raise NotFoundError(f"Game not found with id of {game_id}")

    existing = (
        db.query(Review.id)
        .filter(Review.user_id == user.id, Review.game_id == game_id)
        .first()
    )
    if existing:
        raise ConflictError("You have already reviewed this game")

    review = Review(user_id=user.id, game_id=game_id, rating=rating, comment=text, likes=[])
    db.add(review)
    try:
        db.flush()
    except IntegrityError as exc:
        # a concurrent request inserted the same (user, game) pair
        db.rollback()
        raise ConflictError("You have already reviewed this game") from exc
    recompute_game_rating(db, game_id)
    db.commit()
    db.refresh(review)
    logger.info("User %s reviewed game %s (%s)", user.id, game_id, rating)
    return review


def update_review(
    db: Session,
    actor: User,
    review_id: str,
    rating: Optional[int] = None,
    comment: Optional[str] = None,
) -> Review:
    review = get_review(db, review_id)
    ensure_can_edit(actor, review, "review")
    if rating is not None:
        review.rating = _validate_rating(rating)
    if comment is not None:
        review.comment = require_text(comment)
    recompute_game_rating(db, review.game_id)
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, actor: User, review_id: str) -> None:
    review = get_review(db, review_id)
    ensure_can_delete(actor, review, "review")
    game_id = review.game_id
    db.delete(review)
    recompute_game_rating(db, game_id)
    db.commit()
    logger.info("Review %s deleted by %s", review_id, actor.id)


def toggle_review_like(db: Session, actor: User, review_id: str) -> Review:
    review = get_review(db, review_id)
    toggle_like(review, actor.id)
    db.commit()
    db.refresh(review)
    return review


def add_reply(db: Session, actor: User, review_id: str, comment: Optional[str]) -> ReviewReply:
    text = require_text(comment)
    review = get_review(db, review_id)
    reply = ReviewReply(user_id=actor.id, comment=text, likes=[])
    review.replies.append(reply)
    db.commit()
    db.refresh(reply)
    return reply


def _find_reply(review: Review, reply_id: str) -> ReviewReply:
    return find_child(review.replies, reply_id, "Reply")


def update_reply(db: Session, actor: User, review_id: str, reply_id: str, comment: Optional[str]) -> ReviewReply:
    reply = _find_reply(get_review(db, review_id), reply_id)
    ensure_can_edit(actor, reply, "reply")
    reply.comment = require_text(comment)
    db.commit()
    db.refresh(reply)
    return reply


def delete_reply(db: Session, actor: User, review_id: str, reply_id: str) -> Review:
    review = get_review(db, review_id)
    reply = _find_reply(review, reply_id)
    ensure_can_delete(actor, reply, "reply")
    review.replies.remove(reply)
    db.commit()
    db.refresh(review)
    return review


def toggle_reply_like(db: Session, actor: User, review_id: str, reply_id: str) -> ReviewReply:
    reply = _find_reply(get_review(db, review_id), reply_id)
    toggle_like(reply, actor.id)
    db.commit()
    db.refresh(reply)
    return reply


def add_nested_reply(
    db: Session, actor: User, review_id: str, reply_id: str, comment: Optional[str]
) -> ReviewNestedReply:
    text = require_text(comment)
    reply = _find_reply(get_review(db, review_id), reply_id)
    nested = ReviewNestedReply(user_id=actor.id, comment=text, likes=[])
    reply.nested_replies.append(nested)
    db.commit()
    db.refresh(nested)
    return nested


def _find_nested(db: Session, review_id: str, reply_id: str, nested_id: str) -> tuple[ReviewReply, ReviewNestedReply]:
    reply = _find_reply(get_review(db, review_id), reply_id)
    return reply, find_child(reply.nested_replies, nested_id, "Nested reply")


def update_nested_reply(
    db: Session, actor: User, review_id: str, reply_id: str, nested_id: str, comment: Optional[str]
) -> ReviewNestedReply:
    _, nested = _find_nested(db, review_id, reply_id, nested_id)
    ensure_can_edit(actor, nested, "reply")
    nested.comment = require_text(comment)
    db.commit()
    db.refresh(nested)
    return nested


def delete_nested_reply(db: Session, actor: User, review_id: str, reply_id: str, nested_id: str) -> ReviewReply:
    reply, nested = _find_nested(db, review_id, reply_id, nested_id)
    ensure_can_delete(actor, nested, "reply")
    reply.nested_replies.remove(nested)
    db.commit()
    db.refresh(reply)
    return reply


def toggle_nested_reply_like(
    db: Session, actor: User, review_id: str, reply_id: str, nested_id: str
) -> ReviewNestedReply:
    _, nested = _find_nested(db, review_id, reply_id, nested_id)
    toggle_like(nested, actor.id)
    db.commit()
    db.refresh(nested)
    return nested
