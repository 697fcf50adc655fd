import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./realestate.db")

# Identity provider - tokens are issued by the auth service, we only verify them
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "real-estate-simplified-dev-secret-change-in-production"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Appointment engine
DUPLICATE_REQUEST_WINDOW_HOURS = int(os.getenv("DUPLICATE_REQUEST_WINDOW_HOURS", "24"))
# Max time (ms) to wait for the per-property lock before giving up with a contention error
APPOINTMENT_LOCK_TIMEOUT_MS = int(os.getenv("APPOINTMENT_LOCK_TIMEOUT_MS", "5000"))

# reCAPTCHA v3 - scoring is disabled when the secret key is missing
RECAPTCHA_SECRET_KEY = os.getenv("RECAPTCHA_SECRET_KEY")
RECAPTCHA_MIN_SCORE = float(os.getenv("RECAPTCHA_MIN_SCORE", "0.3"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "Real Estate Simplified <noreply@realestate.com>"
)
AGENCY_NAME = os.getenv("AGENCY_NAME", "Real Estate Simplified")
AGENCY_PHONE = os.getenv("AGENCY_PHONE", "+63-917-123-4567")

CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")
