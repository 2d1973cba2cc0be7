"""
Application configuration, read from the environment (and a .env file if present).
"""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGO = "HS256"
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
PRODUCTION = os.getenv("ENV", "development") == "production"

RESEND_API_KEY = (os.getenv("RESEND_API_KEY") or "").strip()
STORE_NAME = os.getenv("STORE_NAME", "FlySolarStore")
EMAIL_FROM = os.getenv("EMAIL_FROM", f"{STORE_NAME} <orders@flysolarstore.com>")

MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))
LOCK_MINUTES = int(os.getenv("LOCK_MINUTES", "30"))
RESET_TOKEN_MINUTES = int(os.getenv("RESET_TOKEN_MINUTES", "10"))

TIMEZONE = os.getenv("TIMEZONE", "UTC")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
