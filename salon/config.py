# salon/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Auth
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn("SECRET_KEY not set! Using insecure default", RuntimeWarning, stacklevel=2)
    SECRET_KEY = "change-me-later"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# WhatsApp transport: "evolution" (self-hosted) or "meta" (Cloud API)
WHATSAPP_PROVIDER = os.getenv("WHATSAPP_PROVIDER", "evolution")
EVOLUTION_API_URL = os.getenv("EVOLUTION_API_URL", "http://localhost:8080")
EVOLUTION_API_KEY = os.getenv("EVOLUTION_API_KEY", "")
EVOLUTION_INSTANCE = os.getenv("EVOLUTION_INSTANCE", "default")
META_WHATSAPP_TOKEN = os.getenv("META_WHATSAPP_TOKEN", "")
META_PHONE_NUMBER_ID = os.getenv("META_PHONE_NUMBER_ID", "")
WHATSAPP_TIMEOUT_SECONDS = float(os.getenv("WHATSAPP_TIMEOUT_SECONDS", "20"))

# Scheduling
SLOT_MINUTES = 15
SEARCH_DAYS = int(os.getenv("SEARCH_DAYS", "14"))
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "54")

# Jobs
REMINDER_RATE_WINDOW_SECONDS = int(os.getenv("REMINDER_RATE_WINDOW_SECONDS", "300"))
NOTIFICATIONS_MAX_JOBS = int(os.getenv("NOTIFICATIONS_MAX_JOBS", "5"))
JOB_MAX_TRIES = int(os.getenv("JOB_MAX_TRIES", "3"))
JOB_BACKOFF_SECONDS = int(os.getenv("JOB_BACKOFF_SECONDS", "5"))
