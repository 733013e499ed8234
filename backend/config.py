"""
CRM Projects - Configuration
Environment (backend/.env), the shared Motor handle and small helpers.
"""

import hashlib
import logging
import os
import secrets
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger("config")

# ==================== ENVIRONMENT ====================

MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'crm_projects')
CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',')]
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
SESSION_DAYS = int(os.environ.get('SESSION_DAYS', '7'))

# ==================== DATABASE ====================

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]

logger.info(f"[CONFIG] database={DB_NAME} session_days={SESSION_DAYS}")


# ==================== HELPERS ====================

def hash_password(password: str) -> str:
    """SHA256 hex digest, stored in users.password"""
    return hashlib.sha256(password.encode()).hexdigest()


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def now_iso() -> str:
    """UTC now, ISO-8601, the format of every stored timestamp"""
    return datetime.now(timezone.utc).isoformat()
