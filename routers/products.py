from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query

from catalog import CatalogStore
from database import serialize_doc
from deps import admin_only, get_catalog
from errors import NotFoundError, envelope
from schemas import ProductPayload, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["products"])


def listing(products) -> dict:
    return envelope([serialize_doc(p) for p in products], count=len(products))


def lookup(catalog: CatalogStore, identifier: str) -> dict:
    if ObjectId.is_valid(identifier):
        product = catalog.get_product(identifier)
    else:
        product = catalog.get_product_by_slug(identifier)
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.get("")
def list_products(
    category: Optional[str] = None,
    sort_by: str = Query("newest", alias="sortBy"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    catalog: CatalogStore = Depends(get_catalog),
):
    return listing(catalog.list_products(category, sort_by, min_price, max_price, search))


# Admin

@router.get("/admin/products")
def admin_list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    catalog: CatalogStore = Depends(get_catalog),
    admin: dict = Depends(admin_only),
):
    products, total_rows = catalog.admin_list(page, limit)
    return envelope(
        [serialize_doc(p) for p in products],
        pagination={
            "total_rows": total_rows,
            "page": page,
            "limit": limit,
            "total": -(-total_rows // limit),
        },
    )


@router.post("/admin/products", status_code=201)
def admin_create_product(
    payload: ProductPayload, catalog: CatalogStore = Depends(get_catalog), admin: dict = Depends(admin_only)
):
    product = catalog.create_product(payload)
    return envelope(serialize_doc(product), message="Product created successfully")


@router.put("/admin/products/{product_id}")
def admin_update_product(
    product_id: str,
    payload: ProductUpdate,
    catalog: CatalogStore = Depends(get_catalog),
    admin: dict = Depends(admin_only),
):
    product = catalog.edit_product(product_id, payload)
    return envelope(serialize_doc(product), message="Product updated successfully")


@router.delete("/admin/product/{product_id}")
def admin_delete_product(
    product_id: str, catalog: CatalogStore = Depends(get_catalog), admin: dict = Depends(admin_only)
):
    catalog.delete_product(product_id)
    return envelope(message="Product deleted successfully")


# Storefront placements

@router.get("/flash-deals")
def flash_deals(catalog: CatalogStore = Depends(get_catalog)):
    return listing(catalog.flash_deals())


@router.get("/just-for-you")
def just_for_you(limit: int = Query(12, ge=1, le=100), catalog: CatalogStore = Depends(get_catalog)):
    return listing(catalog.just_for_you(limit))


@router.get("/new-arrivals")
def new_arrivals(catalog: CatalogStore = Depends(get_catalog)):
    return listing(catalog.new_arrivals())


@router.get("/featured")
def featured(catalog: CatalogStore = Depends(get_catalog)):
    return listing(catalog.featured())


@router.get("/featured-grid")
def featured_grid(catalog: CatalogStore = Depends(get_catalog)):
    return listing(catalog.featured_grid())


@router.get("/search")
def search_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    catalog: CatalogStore = Depends(get_catalog),
):
    return listing(catalog.search_products(q, category, min_price, max_price, limit))


@router.get("/category/{category}")
def products_by_category(
    category: str, limit: int = Query(12, ge=1, le=100), catalog: CatalogStore = Depends(get_catalog)
):
    return listing(catalog.by_category(category, limit))


@router.get("/{identifier}/related")
def related_products(
    identifier: str, limit: int = Query(8, ge=1, le=100), catalog: CatalogStore = Depends(get_catalog)
):
    product = lookup(catalog, identifier)
    return listing(catalog.related_products(product, limit))


@router.get("/{identifier}")
def get_product(identifier: str, catalog: CatalogStore = Depends(get_catalog)):
    return envelope(serialize_doc(lookup(catalog, identifier)))
