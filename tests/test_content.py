import pytest

from content import BannerStore, BlogStore, ServiceStore
from errors import ConflictError, NotFoundError, ValidationError
from schemas import BannerPayload, BannerUpdate, BlogPayload, BlogUpdate, ServicePayload, ServiceUpdate


@pytest.fixture
def blogs(db):
    return BlogStore(db)


def post(blogs, title, **extra):
    payload = BlogPayload(title=title, description=f"About {title}", content="Body text", **extra)
    return blogs.create(payload, "64b7f0c2a1b2c3d4e5f60718")


def test_blog_slug_and_views(blogs):
    blog = post(blogs, "Sizing Your Solar Array")
    assert blog["slug"] == "sizing-your-solar-array"
    assert blog["author"] == "64b7f0c2a1b2c3d4e5f60718"

    assert blogs.get_blog_by_slug("sizing-your-solar-array")["views"] == 1
    assert blogs.get_blog_by_slug("sizing-your-solar-array")["views"] == 2
    assert blogs.get_blog_by_slug("missing") is None

    with pytest.raises(ConflictError):
        post(blogs, "Sizing your solar array")


def test_drafts_stay_private(blogs):
    post(blogs, "Published Post", category="Guides")
    draft = post(blogs, "Draft Post", category="Guides", is_published=False)

    assert [b["title"] for b in blogs.latest()] == ["Published Post"]
    assert [b["title"] for b in blogs.by_category("Guides")] == ["Published Post"]
    assert blogs.get_blog_by_slug(draft["slug"]) is None

    docs, total = blogs.paginated(published_only=True)
    assert total == 1
    docs, total = blogs.paginated()
    assert total == 2


def test_latest_omits_body(blogs):
    post(blogs, "Battery Care")
    assert "content" not in blogs.latest()[0]


def test_blog_search(blogs):
    post(blogs, "Inverter Basics", tags=["inverters"])
    post(blogs, "Panel Cleaning")

    with pytest.raises(ValidationError):
        blogs.search(None)
    assert [b["title"] for b in blogs.search("INVERTER")] == ["Inverter Basics"]


def test_blog_update_and_delete(blogs):
    blog = post(blogs, "First Title")
    post(blogs, "Second Title")

    updated = blogs.update(str(blog["_id"]), BlogUpdate(title="Renamed Title"))
    assert updated["slug"] == "renamed-title"

    with pytest.raises(ConflictError):
        blogs.update(str(blog["_id"]), BlogUpdate(title="Second Title"))
    with pytest.raises(ValidationError):
        blogs.update(str(blog["_id"]), BlogUpdate())

    blogs.delete(str(blog["_id"]))
    with pytest.raises(NotFoundError):
        blogs.delete(str(blog["_id"]))


def test_banners(db):
    banners = BannerStore(db)
    hero = banners.create_hero(BannerPayload(title="  Go Solar  ", type="promo", order=2))
    assert hero["type"] == "hero"
    assert hero["title"] == "Go Solar"

    db["banner"].insert_one({"title": "Promo", "type": "promo", "is_active": True, "order": 0})
    db["banner"].insert_one({"title": "Old Promo", "type": "promo", "is_active": False, "order": 1})

    assert [b["title"] for b in banners.hero()] == ["Go Solar"]
    assert [b["title"] for b in banners.promo()] == ["Promo"]

    updated = banners.update(str(hero["_id"]), BannerUpdate(button_text="Shop now"))
    assert updated["button_text"] == "Shop now"

    banners.delete(str(hero["_id"]))
    with pytest.raises(NotFoundError):
        banners.update(str(hero["_id"]), BannerUpdate(order=1))


def test_banner_payload_forbids_unknown_fields():
    with pytest.raises(ValueError):
        BannerPayload(title="Hi", colour="red")


def test_services(db):
    services = ServiceStore(db)
    second = services.create(ServicePayload(icon="truck", title="Fast Delivery", position=2))
    services.create(ServicePayload(icon="shield", title="Warranty", position=1))
    services.create(ServicePayload(icon="clock", title="Hidden", is_active=False))

    assert [s["title"] for s in services.active()] == ["Warranty", "Fast Delivery"]

    services.update(str(second["_id"]), ServiceUpdate(is_active=False))
    assert [s["title"] for s in services.active()] == ["Warranty"]

    with pytest.raises(NotFoundError):
        services.delete("not-an-id")


# HTTP


def test_blog_routes(client, admin_headers):
    res = client.post(
        "/api/blogs",
        json={"title": "Net Metering Explained", "description": "How export credits work", "category": "Guides"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    blog_id = res.json()["data"]["id"]

    assert client.get("/api/blogs/net-metering-explained").json()["data"]["views"] == 1
    assert client.get("/api/blogs/latest").json()["count"] == 1
    assert client.get("/api/blogs/category/Guides").json()["count"] == 1
    assert client.get("/api/blogs/search?q=metering").json()["count"] == 1

    res = client.get("/api/blogs/users?limit=1")
    assert res.json()["pagination"]["total_rows"] == 1

    res = client.get("/api/blogs/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Blog post not found"}

    res = client.put(f"/api/blogs/{blog_id}", json={"is_published": False}, headers=admin_headers)
    assert res.json()["data"]["is_published"] is False
    assert client.get("/api/blogs/net-metering-explained").status_code == 404
    assert client.get("/api/blogs/admin", headers=admin_headers).json()["count"] == 1

    assert client.delete(f"/api/blogs/{blog_id}", headers=admin_headers).status_code == 200


def test_banner_routes(client, admin_headers):
    res = client.post(
        "/api/homepage/hero-banners",
        json={"title": "Power Your Home", "img_url": "https://cdn.example.com/hero.jpg"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    banner_id = res.json()["data"]["id"]

    res = client.post("/api/homepage/hero-banners", json={"title": "Sneaky", "clicks": 5}, headers=admin_headers)
    assert res.status_code == 400

    res = client.put(f"/api/homepage/hero-banners/{banner_id}", json={"is_active": False}, headers=admin_headers)
    assert res.json()["data"]["is_active"] is False

    assert client.get("/api/homepage/hero-banners").json()["count"] == 1
    assert client.get("/api/homepage/promo-banners").json()["count"] == 0
    assert client.get("/api/homepage/all-banners").status_code == 401
    assert client.get("/api/homepage/all-banners", headers=admin_headers).json()["count"] == 1

    res = client.delete(f"/api/homepage/hero-banners/{banner_id}", headers=admin_headers)
    assert res.json()["message"] == "Hero banner deleted successfully"


def test_service_routes(client, admin_headers):
    res = client.post("/api/services", json={"icon": "truck", "title": "Free Delivery"}, headers=admin_headers)
    assert res.status_code == 201
    service_id = res.json()["data"]["id"]

    assert client.get("/api/services").json()["count"] == 1

    res = client.put(f"/api/services/{service_id}", json={"title": "Next-day Delivery"}, headers=admin_headers)
    assert res.json()["data"]["title"] == "Next-day Delivery"

    assert client.delete(f"/api/services/{service_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/services/{service_id}", headers=admin_headers).status_code == 404
