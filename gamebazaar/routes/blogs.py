from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Blog, User
from ..schemas import BlogIn, BlogUpdate, ContentTextIn
from ..services import blogs as blog_service
from ..services.catalog import ListQuery, list_response, parse_limit, parse_list_params, parse_page
from .deps import get_current_user, get_current_user_optional, require_admin_user

router = APIRouter()


def _blog_dicts(blogs: list[Blog], viewer: Optional[User]) -> list[dict]:
    return [blog_service.serialize_blog(blog, viewer).model_dump(mode="json") for blog in blogs]


def _page_query(page: Optional[str], limit: Optional[str]) -> ListQuery:
    return ListQuery(page=parse_page(page), limit=parse_limit(limit))


@router.get("")
def list_blogs(
    request: Request,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    list_query = parse_list_params(request.query_params.multi_items())
    blogs, total = blog_service.list_blogs(db, list_query, viewer)
    return list_response(_blog_dicts(blogs, viewer), total, list_query)


@router.get("/search")
def search_blogs(
    q: Optional[str] = None,
    blog_type: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    list_query = _page_query(page, limit)
    blogs, total = blog_service.search_blogs(db, q, blog_type, list_query, viewer)
    return list_response(_blog_dicts(blogs, viewer), total, list_query)


@router.get("/featured")
def featured_blogs(
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    blogs = blog_service.featured_blogs(db, parse_limit(limit, blog_service.FEATURED_LIMIT), viewer)
    data = _blog_dicts(blogs, viewer)
    return {"success": True, "count": len(data), "data": data}


@router.get("/category/{blog_type}")
def blogs_by_type(
    blog_type: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    list_query = _page_query(page, limit)
    blogs, total = blog_service.blogs_by_type(db, blog_type, list_query, viewer)
    return list_response(_blog_dicts(blogs, viewer), total, list_query)


@router.get("/{key}")
def get_blog(
    key: str,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    blog = blog_service.read_blog(db, key, viewer)
    return {"success": True, "data": blog_service.serialize_blog(blog, viewer)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_blog(
    payload: BlogIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin_user),
):
    blog = blog_service.create_blog(db, admin, payload)
    return {"success": True, "data": blog_service.serialize_blog(blog, admin)}


@router.put("/{blog_id}")
def update_blog(
    blog_id: str,
    payload: BlogUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin_user),
):
    blog = blog_service.update_blog(db, admin, blog_id, payload)
    return {"success": True, "data": blog_service.serialize_blog(blog, admin)}


@router.delete("/{blog_id}")
def delete_blog(
    blog_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin_user),
):
    blog_service.delete_blog(db, admin, blog_id)
    return {"success": True, "data": {}}


@router.put("/{blog_id}/like")
def like_blog(
    blog_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    blog = blog_service.toggle_blog_like(db, current_user, blog_id)
    return {"success": True, "data": blog_service.serialize_blog(blog, current_user)}


@router.post("/{blog_id}/comment", status_code=status.HTTP_201_CREATED)
def add_comment(
    blog_id: str,
    payload: ContentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = blog_service.add_comment(db, current_user, blog_id, payload.content)
    return {"success": True, "data": blog_service.serialize_blog_comment(comment, current_user)}


@router.put("/{blog_id}/comment/{comment_id}")
def update_comment(
    blog_id: str,
    comment_id: str,
    payload: ContentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = blog_service.update_comment(db, current_user, blog_id, comment_id, payload.content)
    return {"success": True, "data": blog_service.serialize_blog_comment(comment, current_user)}


@router.delete("/{blog_id}/comment/{comment_id}")
def delete_comment(
    blog_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    blog = blog_service.delete_comment(db, current_user, blog_id, comment_id)
    return {"success": True, "data": blog_service.serialize_blog(blog, current_user)}


@router.put("/{blog_id}/comment/{comment_id}/like")
def like_comment(
    blog_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = blog_service.toggle_comment_like(db, current_user, blog_id, comment_id)
    return {"success": True, "data": blog_service.serialize_blog_comment(comment, current_user)}


@router.post("/{blog_id}/comment/{comment_id}/reply", status_code=status.HTTP_201_CREATED)
def add_reply(
    blog_id: str,
    comment_id: str,
    payload: ContentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = blog_service.add_reply(db, current_user, blog_id, comment_id, payload.content)
    return {"success": True, "data": blog_service.serialize_blog_reply(reply, current_user)}


@router.put("/{blog_id}/comment/{comment_id}/reply/{reply_id}")
def update_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    payload: ContentTextIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = blog_service.update_reply(db, current_user, blog_id, comment_id, reply_id, payload.content)
    return {"success": True, "data": blog_service.serialize_blog_reply(reply, current_user)}


@router.delete("/{blog_id}/comment/{comment_id}/reply/{reply_id}")
def delete_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = blog_service.delete_reply(db, current_user, blog_id, comment_id, reply_id)
    return {"success": True, "data": blog_service.serialize_blog_comment(comment, current_user)}


@router.put("/{blog_id}/comment/{comment_id}/reply/{reply_id}/like")
def like_reply(
    blog_id: str,
    comment_id: str,
    reply_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reply = blog_service.toggle_reply_like(db, current_user, blog_id, comment_id, reply_id)
    return {"success": True, "data": blog_service.serialize_blog_reply(reply, current_user)}
