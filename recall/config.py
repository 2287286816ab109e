"""
Recall — Configuration
All environment variables and constants. Single source of truth.
No other file reads os.environ directly.
"""

import os
from pathlib import Path

# Load .env file if present
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip())

# ─── Paths ───────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ─── Database ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{BASE_DIR / 'recall.db'}"
)
# Hosted Postgres providers hand out "postgres://", SQLAlchemy wants "postgresql://"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Set RESET_DATABASE=true to drop all tables and recreate on startup
RESET_DATABASE = os.getenv("RESET_DATABASE", "false").lower() == "true"

# ─── JWT / Auth ──────────────────────────────────────────────────────────────
JWT_SECRET = os.getenv("JWT_SECRET", "recall-dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "24"))
MIN_PASSWORD_LENGTH = 6
MAX_BULK_USERS = 30

# Seeded on first startup when the users table is empty
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "change-me-now")

# ─── Content Limits ──────────────────────────────────────────────────────────
MEMORIZATION_SAVE_LIMIT = int(os.getenv("MEMORIZATION_SAVE_LIMIT", "3"))  # admins are exempt
MAX_SPELLING_WORDS = 100
MAX_PROOFREADING_SENTENCES = 50

# ─── CORS ────────────────────────────────────────────────────────────────────
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ─── Server ──────────────────────────────────────────────────────────────────
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
