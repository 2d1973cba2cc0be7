"""
Accounts: identity, credentials, lockout and the address book.

Lockout policy: MAX_LOGIN_ATTEMPTS consecutive wrong passwords lock the
account for LOCK_MINUTES. A successful sign-in resets the counter; an expired
lock starts a fresh count.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional

import jwt
from pymongo import ReturnDocument
from pymongo.database import Database

from config import FRONTEND_URL, LOCK_MINUTES, MAX_LOGIN_ATTEMPTS, RESET_TOKEN_MINUTES, STORE_NAME
from database import create_document, to_object_id, utcnow
from errors import AppError, AuthError, ConflictError, LockedError, NotFoundError, ValidationError
from notifications import DeliveryOutcome
from schemas import (
    Address,
    RegisterRequest,
    ShippingAddress,
    UpdateProfileRequest,
    User,
)
from security import check_password, decode_token, hash_password, random_token

logger = logging.getLogger(__name__)

DISPOSABLE_DOMAINS = {"mailinator.com", "tempmail.com", "10minutemail.com"}
PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d@$!%*?&]{8,}$")

PRIVATE_FIELDS = (
    "password_hash",
    "email_verification_token",
    "password_reset_token",
    "password_reset_expires",
    "login_attempts",
    "lock_until",
)


def public_user(doc: dict) -> dict:
    return {k: v for k, v in doc.items() if k not in PRIVATE_FIELDS}


def is_locked(user: dict, now: Optional[datetime] = None) -> bool:
    lock_until = user.get("lock_until")
    return bool(lock_until and lock_until > (now or utcnow()))


def check_password_strength(password: str) -> None:
    if not PASSWORD_RE.match(password or ""):
        raise ValidationError(
            "Password must be at least 8 characters long and contain both letters and numbers"
        )


class AddressStore:
    def __init__(self, db: Database):
        self.db = db
        self.addresses = db["address"]

    def find_matching(self, account_id: str, name: str, address: str, contact: str) -> Optional[dict]:
        return self.addresses.find_one(
            {"user_id": account_id, "name": name, "address": address, "contact": contact}
        )

    def create(self, fields: Address) -> dict:
        address_id = create_document(self.db, "address", fields)
        return self.addresses.find_one({"_id": to_object_id(address_id)})

    def for_ids(self, ids: List) -> List[dict]:
        return list(self.addresses.find({"_id": {"$in": [to_object_id(i) for i in ids]}}))


class AccountStore:
    def __init__(self, db: Database):
        self.db = db
        self.users = db["user"]
        self.address_book = AddressStore(db)

    def find_by_id(self, account_id) -> Optional[dict]:
        oid = to_object_id(account_id)
        return self.users.find_one({"_id": oid}) if oid else None

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.users.find_one({"email": email.lower()})

    def append_address(self, account_id, address_id) -> None:
        self.users.update_one(
            {"_id": to_object_id(account_id)},
            {"$push": {"addresses": str(address_id)}, "$set": {"updated_at": utcnow()}},
        )

    def save_shipping_address(self, account_id: str, shipping: ShippingAddress) -> Optional[dict]:
        """Add ``shipping`` to the account's address book unless an equal entry exists."""
        account = self.find_by_id(account_id)
        if not account:
            return None
        existing = self.address_book.find_matching(
            account_id, shipping.name, shipping.address, shipping.contact
        )
        if existing:
            return None
        address = self.address_book.create(Address(user_id=account_id, **shipping.model_dump()))
        self.append_address(account_id, address["_id"])
        return address

    def with_addresses(self, account: dict) -> dict:
        return {**account, "addresses": self.address_book.for_ids(account.get("addresses", []))}

    def record_failed_login(self, user: dict) -> dict:
        now = utcnow()
        lock_until = user.get("lock_until")
        if lock_until and lock_until <= now:
            self.users.update_one({"_id": user["_id"]}, {"$set": {"login_attempts": 0, "lock_until": None}})
        updated = self.users.find_one_and_update(
            {"_id": user["_id"]}, {"$inc": {"login_attempts": 1}}, return_document=ReturnDocument.AFTER
        )
        if updated["login_attempts"] >= MAX_LOGIN_ATTEMPTS:
            lock_until = now + timedelta(minutes=LOCK_MINUTES)
            self.users.update_one({"_id": user["_id"]}, {"$set": {"lock_until": lock_until}})
            updated["lock_until"] = lock_until
            logger.warning("Locked account %s until %s", user["_id"], lock_until.isoformat())
        return updated

    def record_login(self, user: dict) -> dict:
        return self.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"login_attempts": 0, "lock_until": None, "last_login": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )


def authenticate(accounts: AccountStore, token: Optional[str]) -> dict:
    """Resolve a bearer token to an active, unlocked account."""
    if not token:
        raise AuthError("Access denied. No token provided.")
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token.")
    user = accounts.find_by_id(payload.get("sub"))
    if not user:
        raise AuthError("User not found. Token invalid.")
    if not user.get("is_active", True):
        raise AuthError("Account is deactivated.")
    if is_locked(user):
        raise LockedError("Account is temporarily locked.")
    return user


class AuthService:
    def __init__(self, accounts: AccountStore, notifier):
        self.accounts = accounts
        self.users = accounts.users
        self.notifier = notifier

    def _notify(self, user: dict, subject: str, template: str, data: dict) -> DeliveryOutcome:
        outcome = self.notifier.send(user["email"], subject, template, {"name": user["first_name"], **data})
        if not outcome.sent:
            logger.warning("%s email to %s failed: %s", template, user["email"], outcome.error)
        return outcome

    def register(self, payload: RegisterRequest) -> dict:
        email = payload.email.lower()
        if self.accounts.find_by_email(email):
            raise ConflictError("User already exists with this email")
        if email.split("@")[1] in DISPOSABLE_DOMAINS:
            raise ValidationError("Registration using disposable email addresses is not allowed")
        check_password_strength(payload.password)

        token = random_token()
        user = User(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            password_hash=hash_password(payload.password),
            email_verification_token=token,
        )
        user_id = create_document(self.accounts.db, "user", user)
        doc = self.accounts.find_by_id(user_id)
        self._notify(
            doc,
            f"Email Verification - {STORE_NAME}",
            "emailVerification",
            {"verification_link": f"{FRONTEND_URL}/verify-email?token={token}"},
        )
        return doc

    def login(self, email: str, password: str) -> dict:
        user = self.accounts.find_by_email(email)
        if not user:
            raise AuthError("Invalid credentials")
        if is_locked(user):
            raise LockedError("Account is temporarily locked due to too many failed login attempts")
        if not user.get("is_active", True):
            raise AuthError("Account is deactivated. Please contact support.")
        if not check_password(password, user.get("password_hash")):
            self.accounts.record_failed_login(user)
            raise AuthError("Invalid credentials")
        return self.accounts.record_login(user)

    def verify_email(self, token: Optional[str]) -> dict:
        if not token:
            raise ValidationError("Verification token is required")
        user = self.users.find_one({"email_verification_token": token})
        if not user:
            raise ValidationError("Invalid or expired verification token")
        return self.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"is_email_verified": True, "email_verification_token": None}},
            return_document=ReturnDocument.AFTER,
        )

    def forgot_password(self, email: str) -> None:
        user = self.accounts.find_by_email(email)
        if not user:
            raise NotFoundError("No user found with that email")
        token = random_token()
        expires = utcnow() + timedelta(minutes=RESET_TOKEN_MINUTES)
        self.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password_reset_token": token, "password_reset_expires": expires}},
        )
        outcome = self._notify(
            user,
            f"Password Reset - {STORE_NAME}",
            "passwordReset",
            {
                "reset_link": f"{FRONTEND_URL}/reset-password?token={token}",
                "expires_minutes": RESET_TOKEN_MINUTES,
            },
        )
        if not outcome.sent:
            self.users.update_one(
                {"_id": user["_id"]},
                {"$set": {"password_reset_token": None, "password_reset_expires": None}},
            )
            raise AppError("Email could not be sent", 500)

    def reset_password(self, token: str, password: str) -> dict:
        user = self.users.find_one(
            {"password_reset_token": token, "password_reset_expires": {"$gt": utcnow()}}
        )
        if not user:
            raise ValidationError("Invalid or expired reset token")
        check_password_strength(password)
        return self.users.find_one_and_update(
            {"_id": user["_id"]},
            {
                "$set": {
                    "password_hash": hash_password(password),
                    "password_reset_token": None,
                    "password_reset_expires": None,
                    "login_attempts": 0,
                    "lock_until": None,
                    "updated_at": utcnow(),
                }
            },
            return_document=ReturnDocument.AFTER,
        )

    def update_password(self, user: dict, current_password: str, new_password: str) -> dict:
        if not check_password(current_password, user.get("password_hash")):
            raise ValidationError("Current password is incorrect")
        check_password_strength(new_password)
        return self.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"password_hash": hash_password(new_password), "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def update_profile(self, user: dict, payload: UpdateProfileRequest) -> dict:
        changes = {k: v for k, v in payload.model_dump(exclude_none=True).items() if v != ""}
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != user["email"] and self.accounts.find_by_email(changes["email"]):
                raise ConflictError("Email already in use")
        if not changes:
            return user
        changes["updated_at"] = utcnow()
        return self.users.find_one_and_update(
            {"_id": user["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
