from .admin import ensure_admin_role, is_admin_identity
from .text import estimate_read_time, slugify

__all__ = [
    "ensure_admin_role",
    "is_admin_identity",
    "estimate_read_time",
    "slugify",
]
