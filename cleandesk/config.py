import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleandesk.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Website form ingestion
# Shared secret the marketing website sends in the x-form-ingest-secret header
FORM_INGEST_SECRET = os.getenv("FORM_INGEST_SECRET")
# Slug of the organization that receives website submissions
DEFAULT_ORG_SLUG = os.getenv("DEFAULT_ORG_SLUG")
FORM_INGEST_RATE_LIMIT = int(os.getenv("FORM_INGEST_RATE_LIMIT", "20"))
FORM_INGEST_RATE_WINDOW = int(os.getenv("FORM_INGEST_RATE_WINDOW", "3600"))

# Billing defaults
DEFAULT_TAX_RATE = os.getenv("DEFAULT_TAX_RATE", "13")  # Percentage (13 = 13% HST)
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")
DEFAULT_INVOICE_DUE_DAYS = int(os.getenv("DEFAULT_INVOICE_DUE_DAYS", "15"))

# Rate limiting (Redis). Set RATE_LIMIT_ENABLED=false for local development/tests
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Frontend base URL, used for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:4000",
).split(",")
