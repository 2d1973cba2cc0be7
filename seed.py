"""
Demo data for an empty store: products across the homepage placements, hero
and promo banners, and the service highlights strip.
"""

from pymongo.database import Database

from catalog import slugify
from database import create_document
from schemas import Banner, Product, Service

IMG = "https://images.unsplash.com/{}?q=80&w=1200&auto=format&fit=crop"

DEMO_PRODUCTS = [
    {
        "title": "Monocrystalline Solar Panel 450W",
        "description": "High efficiency half-cut cell panel for residential rooftops.",
        "price": 185000.0,
        "discount": 10,
        "category": "Solar Panels",
        "brand": "Jinko",
        "rating": 4.7,
        "thumbnail": IMG.format("photo-1509391366360-2e959784a276"),
        "stock": 120,
        "catalogue": "flash-deals",
        "is_featured": True,
    },
    {
        "title": "Polycrystalline Solar Panel 330W",
        "description": "Budget friendly panel for off-grid cabins and kiosks.",
        "price": 120000.0,
        "discount": 5,
        "category": "Solar Panels",
        "brand": "Canadian Solar",
        "rating": 4.4,
        "thumbnail": IMG.format("photo-1508514177221-188b1cf16e9d"),
        "stock": 80,
        "catalogue": "new-arrivals",
    },
    {
        "title": "Hybrid Inverter 5kVA",
        "description": "Pure sine wave hybrid inverter with built-in MPPT controller.",
        "price": 650000.0,
        "discount": 0,
        "category": "Inverters",
        "brand": "Growatt",
        "rating": 4.6,
        "thumbnail": IMG.format("photo-1613665813446-82a78c468a1d"),
        "stock": 25,
        "catalogue": "just-for-you",
        "is_featured": True,
    },
    {
        "title": "Lithium Battery 5kWh",
        "description": "LiFePO4 wall-mount battery with 6000 cycle life.",
        "price": 1250000.0,
        "discount": 15,
        "category": "Batteries",
        "brand": "Pylontech",
        "rating": 4.8,
        "thumbnail": IMG.format("photo-1620714223084-8fcacc6dfd8d"),
        "stock": 15,
        "catalogue": "featured-grid",
    },
    {
        "title": "MPPT Charge Controller 60A",
        "description": "Maximum power point tracking controller for 12/24/48V systems.",
        "price": 95000.0,
        "discount": 0,
        "category": "Controllers",
        "brand": "Victron",
        "rating": 4.5,
        "thumbnail": IMG.format("photo-1559302504-64aae6ca6b6d"),
        "stock": 40,
        "catalogue": "new-arrivals",
    },
    {
        "title": "Solar Street Light 200W",
        "description": "All-in-one street light with motion sensor and remote.",
        "price": 78000.0,
        "discount": 20,
        "category": "Lighting",
        "brand": "Sunking",
        "rating": 4.3,
        "thumbnail": IMG.format("photo-1497440001374-f26997328c1b"),
        "stock": 60,
        "catalogue": "flash-deals",
    },
]

DEMO_BANNERS = [
    {
        "title": "Power your home with the sun",
        "description": "Complete solar kits installed nationwide.",
        "img_url": IMG.format("photo-1509391366360-2e959784a276"),
        "button_text": "Shop now",
        "button_link": "/products",
        "type": "hero",
        "order": 1,
    },
    {
        "title": "Flash deals on batteries",
        "img_url": IMG.format("photo-1620714223084-8fcacc6dfd8d"),
        "button_text": "See deals",
        "button_link": "/products?category=On Sale",
        "type": "promo",
        "order": 1,
    },
]

DEMO_SERVICES = [
    {"icon": "truck", "title": "Nationwide Delivery", "description": "Shipping arranged after payment.", "position": 1},
    {"icon": "shield", "title": "Warranty Support", "description": "Manufacturer warranty on all products.", "position": 2},
    {"icon": "headset", "title": "Expert Installation", "description": "Certified installers on request.", "position": 3},
]


def seed_demo(db: Database) -> dict:
    """Insert demo records unless the catalog already has products."""
    if db["product"].count_documents({}) > 0:
        return {"status": "already-seeded"}
    for data in DEMO_PRODUCTS:
        create_document(db, "product", Product(slug=slugify(data["title"]), **data))
    for data in DEMO_BANNERS:
        create_document(db, "banner", Banner(**data))
    for data in DEMO_SERVICES:
        create_document(db, "service", Service(**data))
    return {
        "status": "seeded",
        "count": len(DEMO_PRODUCTS),
        "banners": len(DEMO_BANNERS),
        "services": len(DEMO_SERVICES),
    }
