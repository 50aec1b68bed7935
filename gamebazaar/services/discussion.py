"""Helpers shared by review threads and blog comment threads.

Both trees are made of nodes that carry an author, a body of text, a set of
user ids that liked the node and a creation time. Each tree is stored as
ordered child collections on the root row, so locating a node always starts
from a root that the caller has already loaded.
"""

from typing import Iterable, Optional, TypeVar

from ..core.errors import ForbiddenError, NotFoundError, ValidationError
from ..models import User
from ..schemas import UserPublicOut
from .permissions import can_moderate, is_owner

Node = TypeVar("Node")


def require_text(text: Optional[str], label: str = "a comment") -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(f"Please provide {label}")
    return cleaned


def find_child(children: Iterable[Node], child_id: str, noun: str) -> Node:
    for child in children:
        if child.id == child_id:
            return child
    raise NotFoundError(f"{noun} not found with id of {child_id}")


def ensure_can_edit(actor: User, node, noun: str) -> None:
    if not is_owner(actor, node.user_id):
        raise ForbiddenError(f"Not authorized to update this {noun}")


def ensure_can_delete(actor: User, node, noun: str) -> None:
    if not can_moderate(actor, node.user_id):
        raise ForbiddenError(f"Not authorized to delete this {noun}")


def toggle_like(node, user_id: str) -> bool:
    """Flip membership of ``user_id`` in the node's likes. Returns True when now liked."""
    likes = list(node.likes or [])
    if user_id in likes:
        node.likes = [value for value in likes if value != user_id]
        return False
    # assign a new list so the JSON column is flagged dirty
    node.likes = likes + [user_id]
    return True


def author_out(user: Optional[User]) -> Optional[UserPublicOut]:
    if user is None:
        return None
    return UserPublicOut.model_validate(user)
