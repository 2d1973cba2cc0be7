import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from config import JWT_ALGO, JWT_EXPIRE_DAYS, JWT_SECRET


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode(), salt).decode()


def check_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def create_token(user_doc: dict) -> str:
    payload = {
        "sub": str(user_doc.get("_id")),
        "email": user_doc["email"],
        "role": user_doc.get("role", "user"),
        "exp": datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRE_DAYS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


def decode_token(token: str) -> dict:
    """Raises jwt.InvalidTokenError (or a subclass) on a bad or expired token."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])


def random_token() -> str:
    return secrets.token_hex(32)
