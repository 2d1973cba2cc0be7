from typing import Optional

from fastapi import APIRouter, Depends, Query

from catalog import CategoryStore
from database import serialize_doc
from deps import admin_only, get_categories
from errors import envelope
from schemas import CategoryPayload

router = APIRouter(prefix="/api/admin/categories", tags=["categories"], dependencies=[Depends(admin_only)])


@router.post("/create", status_code=201)
def create_category(payload: CategoryPayload, categories: CategoryStore = Depends(get_categories)):
    category = categories.create(payload)
    return envelope(serialize_doc(category), message=f"{category['name']} Category created successfully")


@router.get("/")
def list_categories(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    categories: CategoryStore = Depends(get_categories),
):
    docs = categories.list_categories()
    total_rows = len(docs)
    per_page = limit or total_rows or 1
    start = (page - 1) * per_page
    return envelope(
        [serialize_doc(c) for c in docs[start:start + per_page]],
        pagination={
            "total_rows": total_rows,
            "limit": per_page,
            "page": page,
            "total_pages": -(-total_rows // per_page),
        },
    )


@router.get("/{category_id}")
def get_category(category_id: str, categories: CategoryStore = Depends(get_categories)):
    return envelope(serialize_doc(categories.get(category_id)))


@router.put("/edit/{category_id}")
def update_category(
    category_id: str, payload: CategoryPayload, categories: CategoryStore = Depends(get_categories)
):
    category = categories.update(category_id, payload)
    return envelope(serialize_doc(category), message="Category updated successfully")


@router.delete("/delete/{category_id}")
def delete_category(category_id: str, categories: CategoryStore = Depends(get_categories)):
    categories.delete(category_id)
    return envelope(message="Category deleted successfully")
