import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./haircrew.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session tokens (JWT in an httpOnly cookie or Bearer header)
SESSION_COOKIE_NAME = (
    "__Secure-session-token" if IS_PRODUCTION else "session-token"
)
SESSION_MAX_AGE_DAYS = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
PASSWORD_RESET_TTL_MINUTES = int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "60"))

# Public storefront URL used in email links
BASE_URL = os.getenv("BASE_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "HairCrew <noreply@haircrew.com>")

# Pusher (hosted pub/sub for admin dashboard and storefront live updates)
PUSHER_APP_ID = os.getenv("PUSHER_APP_ID")
PUSHER_KEY = os.getenv("PUSHER_KEY")
PUSHER_SECRET = os.getenv("PUSHER_SECRET")
PUSHER_CLUSTER = os.getenv("PUSHER_CLUSTER", "ap2")

# Cloudflare R2 Configuration (product images)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "haircrew")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Redis for rate limiting and catalog caching. Unset = both disabled.
REDIS_URL = os.getenv("REDIS_URL")

# Storefront rules
CURRENCY = os.getenv("CURRENCY", "INR")
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "1000"))
STANDARD_SHIPPING_FEE = float(os.getenv("STANDARD_SHIPPING_FEE", "50"))
LOW_STOCK_THRESHOLD = 10

# Frontend / CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", BASE_URL)
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://haircrew.in,https://www.haircrew.in,http://localhost:3000",
).split(",")

# CSRF is ENABLED by default; set CSRF_ENABLED=false only for development/testing
CSRF_ENABLED = os.getenv("CSRF_ENABLED", "true").lower() == "true"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Product image uploads
MAX_UPLOAD_FILES = 5
MAX_UPLOAD_SIZE = 4 * 1024 * 1024  # 4MB
