import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from ..core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ..models import Blog, BlogComment, BlogReply, BlogTag, Game, User
from ..schemas import BlogCommentOut, BlogIn, BlogOut, BlogReplyOut, BlogUpdate, GameSummaryOut
from ..utils.admin import is_admin_identity
from ..utils.text import estimate_read_time, slugify
from .catalog import ListQuery, apply_filters, apply_sort, case_insensitive_match, paginate
from .discussion import author_out, ensure_can_delete, ensure_can_edit, find_child, require_text, toggle_like
from .permissions import can_moderate, is_owner, permission_flags

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 5
MAX_COMMENT_LENGTH = 500

BLOG_COLUMNS = {
    "title": (Blog.title, str),
    "slug": (Blog.slug, str),
    "status": (Blog.status, str),
    "author_id": (Blog.author_id, str),
    "featured": (Blog.featured, bool),
    "views": (Blog.views, int),
    "read_time": (Blog.read_time, int),
    "created_at": (Blog.created_at, datetime),
    "updated_at": (Blog.updated_at, datetime),
}

BLOG_MATCHERS = {
    "blog_type": lambda values: case_insensitive_match(Blog.blog_type, values),
}
# camelCase key used by storefront clients
BLOG_MATCHERS["blogType"] = BLOG_MATCHERS["blog_type"]


def serialize_blog_reply(reply: BlogReply, viewer: Optional[User]) -> BlogReplyOut:
    return BlogReplyOut(
        id=reply.id,
        user=author_out(reply.user),
        content=reply.content,
        likes=list(reply.likes or []),
        created_at=reply.created_at,
        **permission_flags(viewer, reply.user_id),
    )


def serialize_blog_comment(comment: BlogComment, viewer: Optional[User]) -> BlogCommentOut:
    return BlogCommentOut(
        id=comment.id,
        user=author_out(comment.user),
        content=comment.content,
        likes=list(comment.likes or []),
        created_at=comment.created_at,
        replies=[serialize_blog_reply(reply, viewer) for reply in comment.replies],
        **permission_flags(viewer, comment.user_id),
    )


def serialize_blog(blog: Blog, viewer: Optional[User]) -> BlogOut:
    return BlogOut(
        id=blog.id,
        title=blog.title,
        slug=blog.slug,
        description=blog.description,
        content=blog.content,
        blog_type=blog.blog_type,
        frontpage_image=blog.frontpage_image,
        images=list(blog.images or []),
        author=author_out(blog.author),
        status=blog.status,
        tags=list(blog.tags or []),
        views=blog.views or 0,
        likes=list(blog.likes or []),
        comments=[serialize_blog_comment(comment, viewer) for comment in blog.comments],
        featured=bool(blog.featured),
        read_time=blog.read_time or 1,
        related_games=[GameSummaryOut.model_validate(game) for game in blog.related_games],
        created_at=blog.created_at,
        updated_at=blog.updated_at,
        **permission_flags(viewer, blog.author_id),
    )


def _visible_to(query: Query, viewer: Optional[User]) -> Query:
    if is_admin_identity(viewer):
        return query
    return query.filter(Blog.status == "published")


def list_blogs(db: Session, list_query: ListQuery, viewer: Optional[User]) -> tuple[list[Blog], int]:
    if not is_admin_identity(viewer):
        # the published constraint below replaces any caller supplied status
        list_query.filters = {key: values for key, values in list_query.filters.items() if key[0] != "status"}
    query = apply_filters(db.query(Blog), list_query, BLOG_COLUMNS, BLOG_MATCHERS)
    query = _visible_to(query, viewer)
    query = apply_sort(query, list_query.sort, BLOG_COLUMNS, Blog.created_at.desc())
    return paginate(query, list_query)


def search_blogs(
    db: Session,
    text: Optional[str],
    blog_type: Optional[str],
    list_query: ListQuery,
    viewer: Optional[User],
) -> tuple[list[Blog], int]:
    needle = (text or "").strip()
    if not needle:
        raise ValidationError("Please provide search query")
    lowered = needle.lower()
    query = db.query(Blog).filter(
        or_(
            func.lower(Blog.title).contains(lowered, autoescape=True),
            func.lower(Blog.description).contains(lowered, autoescape=True),
            func.lower(Blog.content).contains(lowered, autoescape=True),
            Blog.tag_rows.any(func.lower(BlogTag.name).contains(lowered, autoescape=True)),
        )
    )
    if blog_type:
        query = query.filter(case_insensitive_match(Blog.blog_type, [blog_type]))
    query = _visible_to(query, viewer).order_by(Blog.created_at.desc())
    return paginate(query, list_query)


def featured_blogs(db: Session, limit: int, viewer: Optional[User]) -> list[Blog]:
    query = _visible_to(db.query(Blog).filter(Blog.featured.is_(True)), viewer)
    return query.order_by(Blog.created_at.desc()).limit(limit).all()


def blogs_by_type(
    db: Session, blog_type: str, list_query: ListQuery, viewer: Optional[User]
) -> tuple[list[Blog], int]:
    query = db.query(Blog).filter(case_insensitive_match(Blog.blog_type, [blog_type]))
    query = _visible_to(query, viewer).order_by(Blog.created_at.desc())
    return paginate(query, list_query)


def get_blog_by_id(db: Session, blog_id: str) -> Blog:
    blog = db.query(Blog).filter(Blog.id == blog_id).first()
    if not blog:
        raise NotFoundError("Blog not found")
    return blog


def read_blog(db: Session, key: str, viewer: Optional[User]) -> Blog:
    """Look a blog up by id or slug. Published reads count as a view."""
    blog = db.query(Blog).filter(or_(Blog.id == key, Blog.slug == key)).first()
    if not blog:
        raise NotFoundError("Blog not found")
    if blog.status != "published" and not is_admin_identity(viewer):
        raise NotFoundError("Blog not found")
    if blog.status == "published":
        db.query(Blog).filter(Blog.id == blog.id).update(
            {Blog.views: Blog.views + 1, Blog.updated_at: Blog.updated_at},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(blog)
    return blog


def _related_games(db: Session, game_ids: list[str]) -> list[Game]:
    unique_ids = list(dict.fromkeys(game_ids))
    if not unique_ids:
        return []
    games = db.query(Game).filter(Game.id.in_(unique_ids)).all()
    if len(games) != len(unique_ids):
        raise ValidationError("One or more related games not found")
    return games


def _ensure_slug_free(db: Session, slug: str, blog_id: Optional[str] = None) -> None:
    if not slug:
        raise ValidationError("Blog title must contain letters or digits")
    query = db.query(Blog.id).filter(Blog.slug == slug)
    if blog_id:
        query = query.filter(Blog.id != blog_id)
    if query.first():
        raise ConflictError("Blog with similar title already exists")


def _commit_blog(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Blog with similar title already exists") from exc


def create_blog(db: Session, author: User, payload: BlogIn) -> Blog:
    slug = slugify(payload.title)
    _ensure_slug_free(db, slug)
    values = payload.model_dump(exclude={"related_games"})
    blog = Blog(
        author_id=author.id,
        slug=slug,
        read_time=estimate_read_time(payload.content),
        views=0,
        likes=[],
        **values,
    )
    blog.related_games = _related_games(db, payload.related_games)
    db.add(blog)
    _commit_blog(db)
    db.refresh(blog)
    logger.info("Blog %s created by %s", blog.id, author.id)
    return blog


def update_blog(db: Session, actor: User, blog_id: str, payload: BlogUpdate) -> Blog:
    blog = get_blog_by_id(db, blog_id)
    if not is_owner(actor, blog.author_id):
        raise ForbiddenError("Not authorized to update this blog")

    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    related = changes.pop("related_games", None)
    for key, value in changes.items():
        setattr(blog, key, value)
    if "title" in changes:
        blog.slug = slugify(blog.title)
        _ensure_slug_free(db, blog.slug, blog.id)
    if "content" in changes:
        blog.read_time = estimate_read_time(blog.content)
    if related is not None:
        blog.related_games = _related_games(db, related)
    _commit_blog(db)
    db.refresh(blog)
    return blog


def delete_blog(db: Session, actor: User, blog_id: str) -> None:
    blog = get_blog_by_id(db, blog_id)
    if not can_moderate(actor, blog.author_id):
        raise ForbiddenError("Not authorized to delete this blog")
    db.delete(blog)
    db.commit()
    logger.info("Blog %s deleted by %s", blog_id, actor.id)


def toggle_blog_like(db: Session, actor: User, blog_id: str) -> Blog:
    blog = get_blog_by_id(db, blog_id)
    toggle_like(blog, actor.id)
    db.commit()
    db.refresh(blog)
    return blog


def _comment_text(content: Optional[str], label: str) -> str:
    text = require_text(content, label)
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment cannot be more than {MAX_COMMENT_LENGTH} characters")
    return text


def add_comment(db: Session, actor: User, blog_id: str, content: Optional[str]) -> BlogComment:
    text = _comment_text(content, "comment content")
    blog = get_blog_by_id(db, blog_id)
    if blog.status != "published":
        raise InvalidStateError("Cannot comment on unpublished blog")
    comment = BlogComment(user_id=actor.id, content=text, likes=[])
    blog.comments.append(comment)
    db.commit()
    db.refresh(comment)
    return comment


def _find_comment(blog: Blog, comment_id: str) -> BlogComment:
    return find_child(blog.comments, comment_id, "Comment")


def update_comment(db: Session, actor: User, blog_id: str, comment_id: str, content: Optional[str]) -> BlogComment:
    comment = _find_comment(get_blog_by_id(db, blog_id), comment_id)
    ensure_can_edit(actor, comment, "comment")
    comment.content = _comment_text(content, "comment content")
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, actor: User, blog_id: str, comment_id: str) -> Blog:
    blog = get_blog_by_id(db, blog_id)
    comment = _find_comment(blog, comment_id)
    ensure_can_delete(actor, comment, "comment")
    blog.comments.remove(comment)
    db.commit()
    db.refresh(blog)
    return blog


def toggle_comment_like(db: Session, actor: User, blog_id: str, comment_id: str) -> BlogComment:
    comment = _find_comment(get_blog_by_id(db, blog_id), comment_id)
    toggle_like(comment, actor.id)
    db.commit()
    db.refresh(comment)
    return comment


def add_reply(db: Session, actor: User, blog_id: str, comment_id: str, content: Optional[str]) -> BlogReply:
    text = _comment_text(content, "reply content")
    comment = _find_comment(get_blog_by_id(db, blog_id), comment_id)
    reply = BlogReply(user_id=actor.id, content=text, likes=[])
    comment.replies.append(reply)
    db.commit()
    db.refresh(reply)
    return reply


def _find_reply(db: Session, blog_id: str, comment_id: str, reply_id: str) -> tuple[BlogComment, BlogReply]:
    comment = _find_comment(get_blog_by_id(db, blog_id), comment_id)
    return comment, find_child(comment.replies, reply_id, "Reply")


def update_reply(
    db: Session, actor: User, blog_id: str, comment_id: str, reply_id: str, content: Optional[str]
) -> BlogReply:
    _, reply = _find_reply(db, blog_id, comment_id, reply_id)
    ensure_can_edit(actor, reply, "reply")
    reply.content = _comment_text(content, "reply content")
    db.commit()
    db.refresh(reply)
    return reply


def delete_reply(db: Session, actor: User, blog_id: str, comment_id: str, reply_id: str) -> BlogComment:
    comment, reply = _find_reply(db, blog_id, comment_id, reply_id)
    ensure_can_delete(actor, reply, "reply")
    comment.replies.remove(reply)
    db.commit()
    db.refresh(comment)
    return comment


def toggle_reply_like(db: Session, actor: User, blog_id: str, comment_id: str, reply_id: str) -> BlogReply:
    _, reply = _find_reply(db, blog_id, comment_id, reply_id)
    toggle_like(reply, actor.id)
    db.commit()
    db.refresh(reply)
    return reply
