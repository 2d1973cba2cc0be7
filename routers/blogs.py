from typing import Optional

from fastapi import APIRouter, Depends, Query

from content import BlogStore
from database import serialize_doc
from deps import admin_only, get_blogs
from errors import NotFoundError, envelope, pagination
from schemas import BlogPayload, BlogUpdate

router = APIRouter(prefix="/api/blogs", tags=["blogs"])


def listing(blogs) -> dict:
    return envelope([serialize_doc(b) for b in blogs], count=len(blogs))


def page_of(blogs, page: int, limit: int, total: int) -> dict:
    return envelope(
        [serialize_doc(b) for b in blogs],
        count=len(blogs),
        pagination=pagination(page, limit, total, total_key="total_rows"),
    )


@router.post("", status_code=201)
def create_blog(payload: BlogPayload, blogs: BlogStore = Depends(get_blogs), admin: dict = Depends(admin_only)):
    blog = blogs.create(payload, str(admin["_id"]))
    return envelope(serialize_doc(blog), message="Blog post created successfully")


@router.put("/{blog_id}")
def update_blog(
    blog_id: str, payload: BlogUpdate, blogs: BlogStore = Depends(get_blogs), admin: dict = Depends(admin_only)
):
    blog = blogs.update(blog_id, payload)
    return envelope(serialize_doc(blog), message="Blog post updated successfully")


@router.delete("/{blog_id}")
def delete_blog(blog_id: str, blogs: BlogStore = Depends(get_blogs), admin: dict = Depends(admin_only)):
    blogs.delete(blog_id)
    return envelope(message="Blog post deleted successfully")


@router.get("/latest")
def latest_blogs(limit: int = Query(6, ge=1, le=50), blogs: BlogStore = Depends(get_blogs)):
    return listing(blogs.latest(limit))


@router.get("/users")
def published_articles(
    page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100), blogs: BlogStore = Depends(get_blogs)
):
    docs, total = blogs.paginated(page, limit, published_only=True)
    return page_of(docs, page, limit, total)


@router.get("/admin")
def all_blogs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    blogs: BlogStore = Depends(get_blogs),
    admin: dict = Depends(admin_only),
):
    docs, total = blogs.paginated(page, limit)
    return page_of(docs, page, limit, total)


@router.get("/search")
def search_blogs(q: Optional[str] = None, blogs: BlogStore = Depends(get_blogs)):
    return listing(blogs.search(q))


@router.get("/category/{category}")
def blogs_by_category(category: str, limit: int = Query(10, ge=1, le=50), blogs: BlogStore = Depends(get_blogs)):
    return listing(blogs.by_category(category, limit))


@router.get("/{slug}")
def get_blog(slug: str, blogs: BlogStore = Depends(get_blogs)):
    blog = blogs.get_blog_by_slug(slug)
    if not blog:
        raise NotFoundError("Blog post not found")
    return envelope(serialize_doc(blog))
