from fastapi import APIRouter, Depends

from content import BannerStore
from database import serialize_doc
from deps import admin_only, get_banners
from errors import envelope
from schemas import BannerPayload, BannerUpdate

router = APIRouter(prefix="/api/homepage", tags=["homepage"])


def listing(banners) -> dict:
    return envelope([serialize_doc(b) for b in banners], count=len(banners))


@router.get("/hero-banners")
def hero_banners(banners: BannerStore = Depends(get_banners)):
    return listing(banners.hero())


@router.get("/promo-banners")
def promo_banners(banners: BannerStore = Depends(get_banners)):
    return listing(banners.promo())


@router.get("/all-banners")
def all_banners(banners: BannerStore = Depends(get_banners), admin: dict = Depends(admin_only)):
    return listing(banners.all())


@router.post("/hero-banners", status_code=201)
def create_hero_banner(
    payload: BannerPayload, banners: BannerStore = Depends(get_banners), admin: dict = Depends(admin_only)
):
    banner = banners.create_hero(payload)
    return envelope(serialize_doc(banner), message="Hero banner created successfully")


@router.put("/hero-banners/{banner_id}")
def update_hero_banner(
    banner_id: str,
    payload: BannerUpdate,
    banners: BannerStore = Depends(get_banners),
    admin: dict = Depends(admin_only),
):
    banner = banners.update(banner_id, payload)
    return envelope(serialize_doc(banner), message="Hero banner updated successfully")


@router.delete("/hero-banners/{banner_id}")
def delete_hero_banner(
    banner_id: str, banners: BannerStore = Depends(get_banners), admin: dict = Depends(admin_only)
):
    banners.delete(banner_id)
    return envelope(message="Hero banner deleted successfully")
