"""Centralized configuration for the CalcCart app."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Determine project root (parent of 'calccart' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# Load environment variables from .env file (explicitly specify path)
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

__all__ = [
    "DB_PATH",
    "LOG_DIR",
    "LOG_TO_FILE",
    "SHOPIFY_API_SECRET",
    "SHOPIFY_ADMIN_ACCESS_TOKEN",
    "SHOPIFY_API_VERSION",
    "PRODUCTS_PAGE_SIZE",
    "REQUEST_TIMEOUT",
    "FLASK_HOST",
    "FLASK_PORT",
    "FLASK_DEBUG",
    "SECRET_KEY",
]

# Database - use absolute path for consistent loading
DB_PATH = os.getenv("DB_PATH", str(_PROJECT_ROOT / "data" / "calccart.db"))

# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", str(_PROJECT_ROOT / "logs")))
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "True").lower() == "true"

# Shopify app credentials. Webhooks are signed with the app's API secret;
# an empty secret rejects every webhook delivery.
SHOPIFY_API_SECRET = os.getenv("SHOPIFY_API_SECRET", "")
SHOPIFY_ADMIN_ACCESS_TOKEN = os.getenv("SHOPIFY_ADMIN_ACCESS_TOKEN", "")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2025-01")

# Admin product listing only shows the first page
PRODUCTS_PAGE_SIZE = 50

# Request timeouts (seconds)
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "15"))

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "calccart-dev-secret")
