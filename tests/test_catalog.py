import pytest

from catalog import CategoryStore, discounted_price, slugify
from errors import ConflictError, NotFoundError, ValidationError
from schemas import CategoryPayload, ProductUpdate


@pytest.mark.parametrize(
    "title, slug",
    [
        ("Solar Panel 450W", "solar-panel-450w"),
        ("  Hybrid   Inverter 5kVA ", "hybrid-inverter-5kva"),
        ("Charge Controller (MPPT) 60A!", "charge-controller-mppt-60a"),
        ("Lithium-Ion Battery", "lithium-ion-battery"),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_discounted_price():
    assert discounted_price(1000, 10) == 900
    assert discounted_price(80, 0) == 80
    assert discounted_price(80, None) == 80


def test_create_product_derives_slug(make_product):
    product = make_product(title="Charge Controller 60A")
    assert product["slug"] == "charge-controller-60a"
    assert product["views"] == 0
    assert product["created_at"] is not None


def test_duplicate_title_conflicts(make_product):
    make_product(title="Solar Panel 450W")
    with pytest.raises(ConflictError):
        make_product(title="Solar Panel 450W")


def test_get_product_counts_views(catalog, make_product):
    product = make_product()
    assert catalog.get_product(str(product["_id"]))["views"] == 1
    assert catalog.get_product_by_slug(product["slug"])["views"] == 2
    assert catalog.find_by_id(str(product["_id"]))["views"] == 2
    assert catalog.get_product("nope") is None


def test_inactive_product_hidden_by_slug(catalog, make_product):
    product = make_product(is_active=False)
    assert catalog.get_product_by_slug(product["slug"]) is None


def test_listing_hides_inactive_and_sold_out(catalog, make_product):
    make_product(title="Listed")
    make_product(title="Hidden", is_active=False)
    make_product(title="Sold Out", stock=0)

    assert [p["title"] for p in catalog.list_products()] == ["Listed"]


def test_listing_filters_and_sorts(catalog, make_product):
    make_product(title="Cheap Panel", price=100, discount=0)
    make_product(title="Mid Inverter", price=500, discount=5, category="Inverters")
    make_product(title="Pricey Battery", price=900, discount=0, category="Batteries")

    assert [p["title"] for p in catalog.list_products(sort_by="price-low")] == [
        "Cheap Panel",
        "Mid Inverter",
        "Pricey Battery",
    ]
    assert [p["title"] for p in catalog.list_products(min_price=200, max_price=800)] == ["Mid Inverter"]
    assert [p["title"] for p in catalog.list_products(category="Batteries")] == ["Pricey Battery"]
    assert [p["title"] for p in catalog.list_products(category="On Sale")] == ["Mid Inverter"]
    assert len(catalog.list_products(category="All Products")) == 3
    assert [p["title"] for p in catalog.list_products(search="inverter")] == ["Mid Inverter"]


def test_placements(catalog, make_product):
    make_product(title="Deal", catalogue="flash-deals")
    make_product(title="Fresh", catalogue="new-arrivals", is_featured=True)
    make_product(title="Grid", catalogue="featured-grid")

    assert [p["title"] for p in catalog.flash_deals()] == ["Deal"]
    assert [p["title"] for p in catalog.new_arrivals()] == ["Fresh"]
    assert [p["title"] for p in catalog.featured()] == ["Fresh"]
    assert [p["title"] for p in catalog.featured_grid()] == ["Grid"]
    assert catalog.just_for_you() == []


def test_related_excludes_self(catalog, make_product):
    panel = make_product(title="Panel One")
    make_product(title="Panel Two")
    make_product(title="Inverter", category="Inverters")

    assert [p["title"] for p in catalog.related_products(panel)] == ["Panel Two"]


def test_search_requires_query(catalog, make_product):
    make_product(title="Solar Panel", tags=["rooftop"])
    with pytest.raises(ValidationError):
        catalog.search_products("")
    assert [p["title"] for p in catalog.search_products("ROOFTOP")] == ["Solar Panel"]


def test_edit_product_recomputes_slug(catalog, make_product):
    product = make_product(title="Old Name")
    pid = str(product["_id"])

    edited = catalog.edit_product(pid, ProductUpdate(price=42))
    assert edited["slug"] == "old-name"
    assert edited["price"] == 42

    edited = catalog.edit_product(pid, ProductUpdate(title="New Name"))
    assert edited["slug"] == "new-name"

    with pytest.raises(ValidationError):
        catalog.edit_product(pid, ProductUpdate())
    with pytest.raises(NotFoundError):
        catalog.edit_product("64b7f0c2a1b2c3d4e5f60718", ProductUpdate(price=1))


def test_edit_product_title_clash(catalog, make_product):
    make_product(title="Taken")
    other = make_product(title="Free")
    with pytest.raises(ConflictError):
        catalog.edit_product(str(other["_id"]), ProductUpdate(title="Taken"))


def test_reserve_stock_is_conditional(catalog, make_product):
    product = make_product(stock=3)
    assert catalog.reserve_stock(product["_id"], 2) is True
    assert catalog.reserve_stock(product["_id"], 2) is False
    catalog.release_stock(product["_id"], 2)
    assert catalog.find_by_id(str(product["_id"]))["stock"] == 3


def test_categories(db):
    store = CategoryStore(db)
    created = store.create(CategoryPayload(name="Inverters", is_featured=True))
    with pytest.raises(ConflictError):
        store.create(CategoryPayload(name="Inverters", is_featured=False))

    store.create(CategoryPayload(name="Batteries", is_featured=False))
    assert [c["name"] for c in store.list_categories()] == ["Batteries", "Inverters"]

    renamed = store.update(str(created["_id"]), CategoryPayload(name="Hybrid Inverters", is_featured=False))
    assert renamed["name"] == "Hybrid Inverters"
    with pytest.raises(ConflictError):
        store.update(str(created["_id"]), CategoryPayload(name="Batteries", is_featured=False))

    store.delete(str(created["_id"]))
    with pytest.raises(NotFoundError):
        store.get(str(created["_id"]))


# HTTP


def test_product_routes(client, make_product):
    product = make_product(title="Solar Panel 450W")

    res = client.get("/api/products")
    assert res.json()["count"] == 1

    res = client.get(f"/api/products/{product['slug']}")
    assert res.json()["data"]["id"] == str(product["_id"])

    res = client.get(f"/api/products/{product['_id']}")
    assert res.json()["data"]["views"] == 2

    res = client.get("/api/products/no-such-product")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Product not found"}

    assert client.get("/api/products/search").status_code == 400
    assert client.get("/api/products/search?q=panel").json()["count"] == 1
    assert client.get("/api/products/category/Solar Panels").json()["count"] == 1
    assert client.get(f"/api/products/{product['slug']}/related").json()["count"] == 0


def test_admin_product_routes(client, admin_headers, make_user, auth_header):
    body = {"title": "Battery 10kWh", "price": 2000, "category": "Batteries", "stock": 5}

    assert client.post("/api/products/admin/products", json=body).status_code == 401
    shopper = auth_header(make_user())
    assert client.post("/api/products/admin/products", json=body, headers=shopper).status_code == 403

    res = client.post("/api/products/admin/products", json=body, headers=admin_headers)
    assert res.status_code == 201
    product_id = res.json()["data"]["id"]
    assert res.json()["data"]["slug"] == "battery-10kwh"

    assert client.post("/api/products/admin/products", json=body, headers=admin_headers).status_code == 409

    res = client.put(f"/api/products/admin/products/{product_id}", json={"discount": 20}, headers=admin_headers)
    assert res.json()["data"]["discount"] == 20

    res = client.get("/api/products/admin/products?limit=1", headers=admin_headers)
    assert res.json()["pagination"] == {"total_rows": 1, "page": 1, "limit": 1, "total": 1}

    res = client.delete(f"/api/products/admin/product/{product_id}", headers=admin_headers)
    assert res.json() == {"success": True, "message": "Product deleted successfully"}
    assert client.delete(f"/api/products/admin/product/{product_id}", headers=admin_headers).status_code == 404


def test_category_routes(client, admin_headers):
    res = client.post(
        "/api/admin/categories/create", json={"name": "Inverters", "is_featured": True}, headers=admin_headers
    )
    assert res.status_code == 201
    assert res.json()["message"] == "Inverters Category created successfully"
    category_id = res.json()["data"]["id"]

    client.post("/api/admin/categories/create", json={"name": "Batteries", "is_featured": False}, headers=admin_headers)

    res = client.get("/api/admin/categories/?page=2&limit=1", headers=admin_headers)
    assert [c["name"] for c in res.json()["data"]] == ["Inverters"]
    assert res.json()["pagination"]["total_pages"] == 2

    res = client.put(
        f"/api/admin/categories/edit/{category_id}",
        json={"name": "Hybrid Inverters", "is_featured": True},
        headers=admin_headers,
    )
    assert res.json()["data"]["name"] == "Hybrid Inverters"

    assert client.delete(f"/api/admin/categories/delete/{category_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/categories/{category_id}", headers=admin_headers).status_code == 404


def test_unknown_route(client):
    res = client.get("/api/nowhere")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Route not found"}
