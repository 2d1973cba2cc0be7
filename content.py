"""
Content store: blog posts, homepage banners and store service highlights.
"""

import re
from typing import List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

from catalog import slugify
from database import create_document, get_documents, to_object_id, utcnow
from errors import ConflictError, NotFoundError, ValidationError
from schemas import (
    Banner,
    BannerPayload,
    BannerUpdate,
    Blog,
    BlogPayload,
    BlogUpdate,
    Service,
    ServicePayload,
    ServiceUpdate,
)

NEWEST = [("created_at", -1)]
NO_CONTENT = {"content": 0}


def _update_by_id(collection, doc_id: str, changes: dict, missing: str) -> dict:
    oid = to_object_id(doc_id)
    if oid is None:
        raise NotFoundError(missing)
    if not changes:
        raise ValidationError("No fields to update")
    changes["updated_at"] = utcnow()
    doc = collection.find_one_and_update(
        {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not doc:
        raise NotFoundError(missing)
    return doc


def _delete_by_id(collection, doc_id: str, missing: str) -> None:
    oid = to_object_id(doc_id)
    res = collection.delete_one({"_id": oid}) if oid else None
    if res is None or res.deleted_count == 0:
        raise NotFoundError(missing)


class BlogStore:
    def __init__(self, db: Database):
        self.db = db
        self.blogs = db["blog"]

    def latest(self, limit: int = 6) -> List[dict]:
        return get_documents(
            self.db, "blog", {"is_published": True}, sort=NEWEST, limit=limit, projection=NO_CONTENT
        )

    def by_category(self, category: str, limit: int = 10) -> List[dict]:
        return get_documents(
            self.db,
            "blog",
            {"category": category, "is_published": True},
            sort=NEWEST,
            limit=limit,
            projection=NO_CONTENT,
        )

    def search(self, q: Optional[str]) -> List[dict]:
        if not q:
            raise ValidationError("Search query is required")
        term = {"$regex": re.escape(q), "$options": "i"}
        query = {
            "is_published": True,
            "$or": [{"title": term}, {"description": term}, {"tags": term}],
        }
        return get_documents(self.db, "blog", query, sort=NEWEST, limit=20, projection=NO_CONTENT)

    def get_blog_by_slug(self, slug: str) -> Optional[dict]:
        return self.blogs.find_one_and_update(
            {"slug": slug, "is_published": True},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )

    def paginated(self, page: int = 1, limit: int = 10, published_only: bool = False) -> Tuple[List[dict], int]:
        query = {"is_published": True} if published_only else {}
        docs = get_documents(self.db, "blog", query, sort=NEWEST, skip=(page - 1) * limit, limit=limit)
        return docs, self.blogs.count_documents(query)

    def create(self, payload: BlogPayload, author_id: Optional[str]) -> dict:
        slug = slugify(payload.title)
        if self.blogs.find_one({"slug": slug}):
            raise ConflictError("A blog post with this title already exists")
        blog = Blog(slug=slug, author=author_id, **payload.model_dump())
        blog_id = create_document(self.db, "blog", blog)
        return self.blogs.find_one({"_id": to_object_id(blog_id)})

    def update(self, blog_id: str, payload: BlogUpdate) -> dict:
        changes = payload.model_dump(exclude_unset=True)
        if "title" in changes:
            changes["slug"] = slugify(changes["title"])
            if self.blogs.find_one({"slug": changes["slug"], "_id": {"$ne": to_object_id(blog_id)}}):
                raise ConflictError("A blog post with this title already exists")
        return _update_by_id(self.blogs, blog_id, changes, "Blog post not found")

    def delete(self, blog_id: str) -> None:
        _delete_by_id(self.blogs, blog_id, "Blog post not found")


class BannerStore:
    def __init__(self, db: Database):
        self.db = db
        self.banners = db["banner"]

    def all(self) -> List[dict]:
        return get_documents(self.db, "banner", {}, sort=NEWEST)

    def hero(self) -> List[dict]:
        return get_documents(self.db, "banner", {"type": "hero"}, sort=[("order", 1)])

    def promo(self) -> List[dict]:
        return get_documents(self.db, "banner", {"type": "promo", "is_active": True}, sort=[("order", 1)])

    def create_hero(self, payload: BannerPayload) -> dict:
        data = payload.model_dump()
        data["type"] = "hero"
        banner_id = create_document(self.db, "banner", Banner(**data))
        return self.banners.find_one({"_id": to_object_id(banner_id)})

    def update(self, banner_id: str, payload: BannerUpdate) -> dict:
        return _update_by_id(self.banners, banner_id, payload.model_dump(exclude_unset=True), "Banner not found")

    def delete(self, banner_id: str) -> None:
        _delete_by_id(self.banners, banner_id, "Banner not found")


class ServiceStore:
    def __init__(self, db: Database):
        self.db = db
        self.services = db["service"]

    def active(self) -> List[dict]:
        return get_documents(self.db, "service", {"is_active": True}, sort=[("position", 1)])

    def create(self, payload: ServicePayload) -> dict:
        service_id = create_document(self.db, "service", Service(**payload.model_dump()))
        return self.services.find_one({"_id": to_object_id(service_id)})

    def update(self, service_id: str, payload: ServiceUpdate) -> dict:
        return _update_by_id(self.services, service_id, payload.model_dump(exclude_unset=True), "Service not found")

    def delete(self, service_id: str) -> None:
        _delete_by_id(self.services, service_id, "Service not found")
