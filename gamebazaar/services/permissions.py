from typing import Optional

from ..models import User
from ..utils.admin import is_admin_identity


def is_owner(viewer: Optional[User], author_id: Optional[str]) -> bool:
    return viewer is not None and author_id is not None and viewer.id == author_id


def can_moderate(viewer: Optional[User], author_id: Optional[str]) -> bool:
    """Authors and admins may remove content. Editing stays with the author."""
    return is_owner(viewer, author_id) or is_admin_identity(viewer)


def permission_flags(viewer: Optional[User], author_id: Optional[str]) -> dict:
    return {
        "can_edit": is_owner(viewer, author_id),
        "can_delete": can_moderate(viewer, author_id),
    }
