import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sybertailor.db")

# Token secrets - CRITICAL: No default secrets in production
ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
if not ACCESS_TOKEN_SECRET or not REFRESH_TOKEN_SECRET:
    import warnings

    warnings.warn(
        "ACCESS_TOKEN_SECRET / REFRESH_TOKEN_SECRET not set! Using insecure defaults - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    ACCESS_TOKEN_SECRET = ACCESS_TOKEN_SECRET or "INSECURE-DEV-ACCESS-KEY"  # noqa: S105 - Dev fallback only
    REFRESH_TOKEN_SECRET = REFRESH_TOKEN_SECRET or "INSECURE-DEV-REFRESH-KEY"  # noqa: S105 - Dev fallback only

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

# Cookies must be Secure + SameSite=None for the cross-origin frontend in production
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true").lower() == "true"

# Frontend base URL for CORS and e-mailed links
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "sybertailor")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "SyberTailor <noreply@sybertailor.com>")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "sybertailor@gmail.com")

# Paystack Configuration (amounts are reported in kobo)
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")

# Rate limiting (set RATE_LIMIT_ENABLED=false only for development/testing)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Appointment dates and times are entered in the shop's local time (Lagos, UTC+1)
BUSINESS_UTC_OFFSET_HOURS = int(os.getenv("BUSINESS_UTC_OFFSET_HOURS", "1"))

# Exchange rates (free tier, no API key)
EXCHANGE_RATE_API_URL = os.getenv(
    "EXCHANGE_RATE_API_URL", "https://api.exchangerate-api.com/v4/latest"
)
