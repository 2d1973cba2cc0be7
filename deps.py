"""
FastAPI dependencies: per-request stores and the authentication gate.
"""

import logging
from typing import Optional

from fastapi import Cookie, Depends, Header
from pymongo.database import Database

from accounts import AccountStore, AuthService, authenticate
from catalog import CatalogStore, CategoryStore
from content import BannerStore, BlogStore, ServiceStore
from dashboard import ReportingAggregator, local_now
from database import get_db
from errors import AppError, ForbiddenError
from notifications import EmailSender
from orders import OrderEngine

logger = logging.getLogger(__name__)


def get_notifier() -> EmailSender:
    return EmailSender()


def get_clock():
    return local_now


def get_catalog(db: Database = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_categories(db: Database = Depends(get_db)) -> CategoryStore:
    return CategoryStore(db)


def get_blogs(db: Database = Depends(get_db)) -> BlogStore:
    return BlogStore(db)


def get_banners(db: Database = Depends(get_db)) -> BannerStore:
    return BannerStore(db)


def get_services(db: Database = Depends(get_db)) -> ServiceStore:
    return ServiceStore(db)


def get_accounts(db: Database = Depends(get_db)) -> AccountStore:
    return AccountStore(db)


def get_auth_service(
    accounts: AccountStore = Depends(get_accounts), notifier=Depends(get_notifier)
) -> AuthService:
    return AuthService(accounts, notifier)


def get_order_engine(
    db: Database = Depends(get_db),
    catalog: CatalogStore = Depends(get_catalog),
    accounts: AccountStore = Depends(get_accounts),
    notifier=Depends(get_notifier),
) -> OrderEngine:
    return OrderEngine(db, catalog, accounts, notifier)


def get_reporting(db: Database = Depends(get_db), clock=Depends(get_clock)) -> ReportingAggregator:
    return ReportingAggregator(db, clock)


def bearer_token(
    authorization: Optional[str] = Header(None), token: Optional[str] = Cookie(None)
) -> Optional[str]:
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value:
            return value.strip()
    return token


def current_account(
    token: Optional[str] = Depends(bearer_token), accounts: AccountStore = Depends(get_accounts)
) -> dict:
    return authenticate(accounts, token)


def optional_account(
    token: Optional[str] = Depends(bearer_token), accounts: AccountStore = Depends(get_accounts)
) -> Optional[dict]:
    if not token:
        return None
    try:
        return authenticate(accounts, token)
    except AppError as exc:
        logger.debug("Optional auth ignored token: %s", exc.message)
        return None


def admin_only(user: dict = Depends(current_account)) -> dict:
    if user.get("role") != "admin":
        raise ForbiddenError("Access denied. Insufficient permissions.")
    return user
