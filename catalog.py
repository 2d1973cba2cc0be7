"""
Catalog store: products and product categories.

Public listings only ever show active products that are in stock. Reads of a
single product bump its view counter atomically.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, get_documents, to_object_id, utcnow
from errors import ConflictError, NotFoundError, ValidationError
from schemas import Category, CategoryPayload, Product, ProductPayload, ProductUpdate

logger = logging.getLogger(__name__)

LISTED = {"is_active": True, "stock": {"$gt": 0}}

SORTS = {
    "price-low": [("price", 1)],
    "price-high": [("price", -1)],
    "popular": [("rating", -1), ("views", -1)],
    "newest": [("created_at", -1)],
}


def slugify(title: str) -> str:
    text = re.sub(r"\s+", "-", title.strip().lower())
    return re.sub(r"[^\w\-]+", "", text, flags=re.ASCII)


def discounted_price(price: float, discount: float) -> float:
    return price * (1 - (discount or 0) / 100)


def _icontains(term: str) -> Dict[str, str]:
    return {"$regex": re.escape(term), "$options": "i"}


def _price_range(min_price: Optional[float], max_price: Optional[float]) -> Dict[str, float]:
    rng = {}
    if min_price is not None:
        rng["$gte"] = float(min_price)
    if max_price is not None:
        rng["$lte"] = float(max_price)
    return rng


class CatalogStore:
    def __init__(self, db: Database):
        self.db = db
        self.products = db["product"]

    def _listed(self, extra: Dict[str, Any], sort, limit: int = 0) -> List[dict]:
        return get_documents(self.db, "product", {**LISTED, **extra}, sort=sort, limit=limit)

    # Storefront listings

    def list_products(
        self,
        category: Optional[str] = None,
        sort_by: str = "newest",
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        search: Optional[str] = None,
    ) -> List[dict]:
        query: Dict[str, Any] = {}
        if category and category != "All Products":
            if category == "On Sale":
                query["discount"] = {"$gt": 0}
            else:
                query["category"] = category
        price = _price_range(min_price, max_price)
        if price:
            query["price"] = price
        if search:
            query["$or"] = [{"title": _icontains(search)}, {"category": _icontains(search)}]
        return self._listed(query, SORTS.get(sort_by, SORTS["newest"]))

    def flash_deals(self) -> List[dict]:
        return self._listed({"catalogue": "flash-deals"}, [("discount", -1)], 12)

    def just_for_you(self, limit: int = 12) -> List[dict]:
        return self._listed({"catalogue": "just-for-you"}, [("views", -1), ("rating", -1)], limit)

    def new_arrivals(self) -> List[dict]:
        return self._listed({"catalogue": "new-arrivals"}, SORTS["newest"], 12)

    def featured(self) -> List[dict]:
        return self._listed({"is_featured": True}, [("rating", -1), ("views", -1)], 12)

    def featured_grid(self) -> List[dict]:
        return self._listed({"catalogue": "featured-grid"}, [("views", -1), ("rating", -1)], 6)

    def by_category(self, category: str, limit: int = 12) -> List[dict]:
        return self._listed({"category": category}, [("rating", -1)], limit)

    def related_products(self, product: dict, limit: int = 8) -> List[dict]:
        return self._listed(
            {"_id": {"$ne": product["_id"]}, "category": product.get("category")},
            [("rating", -1), ("views", -1)],
            limit,
        )

    def search_products(
        self,
        q: Optional[str],
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        if not q:
            raise ValidationError("Search query is required")
        query: Dict[str, Any] = {
            "$or": [
                {"title": _icontains(q)},
                {"description": _icontains(q)},
                {"category": _icontains(q)},
                {"tags": _icontains(q)},
            ]
        }
        if category:
            query["category"] = category
        price = _price_range(min_price, max_price)
        if price:
            query["price"] = price
        return self._listed(query, SORTS["popular"], limit or 50)

    # Single product reads

    def get_product(self, product_id: str) -> Optional[dict]:
        oid = to_object_id(product_id)
        if oid is None:
            return None
        return self.products.find_one_and_update(
            {"_id": oid}, {"$inc": {"views": 1}}, return_document=ReturnDocument.AFTER
        )

    def get_product_by_slug(self, slug: str) -> Optional[dict]:
        return self.products.find_one_and_update(
            {"slug": slug, "is_active": True},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )

    def find_by_id(self, product_id: str) -> Optional[dict]:
        oid = to_object_id(product_id)
        if oid is None:
            return None
        return self.products.find_one({"_id": oid})

    def find_by_slug(self, slug: str) -> Optional[dict]:
        return self.products.find_one({"slug": slug})

    # Stock

    def reserve_stock(self, product_id, quantity: int) -> bool:
        """Take ``quantity`` units only if that many are on hand."""
        res = self.products.update_one(
            {"_id": to_object_id(product_id), "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}},
        )
        return res.modified_count == 1

    def release_stock(self, product_id, quantity: int) -> None:
        self.products.update_one({"_id": to_object_id(product_id)}, {"$inc": {"stock": quantity}})

    # Admin

    def count_products(self) -> int:
        return self.products.count_documents({})

    def admin_list(self, page: int = 1, limit: int = 10) -> Tuple[List[dict], int]:
        docs = get_documents(
            self.db,
            "product",
            {},
            sort=SORTS["newest"],
            skip=(page - 1) * limit,
            limit=limit,
            projection={"colors": 0, "reviews": 0},
        )
        return docs, self.count_products()

    def create_product(self, payload: ProductPayload) -> dict:
        slug = slugify(payload.title)
        if self.products.find_one({"$or": [{"title": payload.title}, {"slug": slug}]}):
            raise ConflictError("Product with this title already exists")
        product = Product(slug=slug, **payload.model_dump())
        try:
            product_id = create_document(self.db, "product", product)
        except DuplicateKeyError:
            raise ConflictError("Product with this title already exists")
        logger.info("Created product %s (%s)", product_id, slug)
        return self.products.find_one({"_id": to_object_id(product_id)})

    def edit_product(self, product_id: str, payload: ProductUpdate) -> dict:
        oid = to_object_id(product_id)
        current = self.products.find_one({"_id": oid}) if oid else None
        if not current:
            raise NotFoundError("Product not found")
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")
        if "title" in changes and changes["title"] != current["title"]:
            slug = slugify(changes["title"])
            clash = self.products.find_one(
                {"_id": {"$ne": oid}, "$or": [{"title": changes["title"]}, {"slug": slug}]}
            )
            if clash:
                raise ConflictError("Product with this title already exists")
            changes["slug"] = slug
        changes["updated_at"] = utcnow()
        return self.products.find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )

    def delete_product(self, product_id: str) -> None:
        oid = to_object_id(product_id)
        res = self.products.delete_one({"_id": oid}) if oid else None
        if res is None or res.deleted_count == 0:
            raise NotFoundError("Product not found")


class CategoryStore:
    def __init__(self, db: Database):
        self.db = db
        self.categories = db["category"]

    def list_categories(self) -> List[dict]:
        return get_documents(self.db, "category", {}, sort=[("name", 1)])

    def get(self, category_id: str) -> dict:
        oid = to_object_id(category_id)
        doc = self.categories.find_one({"_id": oid}) if oid else None
        if not doc:
            raise NotFoundError("Category not found")
        return doc

    def create(self, payload: CategoryPayload) -> dict:
        if self.categories.find_one({"name": payload.name}):
            raise ConflictError("Category already exists")
        category_id = create_document(self.db, "category", Category(**payload.model_dump()))
        return self.categories.find_one({"_id": to_object_id(category_id)})

    def update(self, category_id: str, payload: CategoryPayload) -> dict:
        oid = to_object_id(category_id)
        if oid is None:
            raise NotFoundError("Category not found")
        if self.categories.find_one({"name": payload.name, "_id": {"$ne": oid}}):
            raise ConflictError("Category already exists")
        doc = self.categories.find_one_and_update(
            {"_id": oid},
            {"$set": {**payload.model_dump(), "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Category not found")
        return doc

    def delete(self, category_id: str) -> None:
        oid = to_object_id(category_id)
        res = self.categories.delete_one({"_id": oid}) if oid else None
        if res is None or res.deleted_count == 0:
            raise NotFoundError("Category not found")
