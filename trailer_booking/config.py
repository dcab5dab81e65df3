import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# "json" for log aggregation, "console" for local development.
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if LOG_LEVEL == "INFO" else "console").lower()

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

# Secret mixed into access key hashes. Changing it invalidates every issued key.
ACCESS_PEPPER = os.getenv("ACCESS_PEPPER", "")

ADMIN_COOKIE_NAME = os.getenv("ADMIN_COOKIE_NAME", "jla_admin")
ADMIN_COOKIE_SECRET = os.getenv("ADMIN_COOKIE_SECRET", "")

RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_FROM = os.getenv("RESEND_FROM", "JLA Trailer Rentals <no-reply@send.jlatrailers.com>")

GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID")
GOOGLE_CALENDAR_ACCESS_TOKEN = os.getenv("GOOGLE_CALENDAR_ACCESS_TOKEN")

CALENDAR_SYNC_DAYS_BACK = int(os.getenv("CALENDAR_SYNC_DAYS_BACK", "1"))
CALENDAR_SYNC_DAYS_FORWARD = int(os.getenv("CALENDAR_SYNC_DAYS_FORWARD", "60"))

# Events pushed for approved bookings. Hours apply when no pickup time is set.
RENTAL_TIMEZONE = os.getenv("RENTAL_TIMEZONE", "America/New_York")
RENTAL_DEFAULT_START_HOUR = int(os.getenv("RENTAL_DEFAULT_START_HOUR", "9"))
RENTAL_DEFAULT_END_HOUR = int(os.getenv("RENTAL_DEFAULT_END_HOUR", "17"))

SITE_URL = os.getenv("SITE_URL", "https://jlatrailers.com")
REVIEW_URL = os.getenv("REVIEW_URL", "")
