import os
from dotenv import load_dotenv

load_dotenv()

ENV = os.getenv("ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rentalbee.db")

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

# Optional; the app runs without a cache when unset
REDIS_URL = os.getenv("REDIS_URL")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "300"))

# Booking policy
BOOKING_MIN_LEAD_HOURS = int(os.getenv("BOOKING_MIN_LEAD_HOURS", "24"))
FREE_CANCELLATION_HOURS = int(os.getenv("FREE_CANCELLATION_HOURS", "12"))
BOOKING_NUMBER_WIDTH = int(os.getenv("BOOKING_NUMBER_WIDTH", "4"))

NOTIFICATION_MAX_ATTEMPTS = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3"))

LOG_FILE = os.getenv("LOG_FILE", "app.log")
