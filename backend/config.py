"""
Backend configuration
"""

import os
from pathlib import Path

# Base paths
ROOT_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / "data")))
UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", str(DATA_DIR / "uploads")))
DB_PATH = os.getenv("DB_PATH", str(DATA_DIR / "labeling.db"))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3001"))

# CORS origins (frontend URL)
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

# Allocation: seconds an allocated image stays reserved (0 = no reservation)
ALLOCATION_LEASE_SECONDS = float(os.getenv("ALLOCATION_LEASE_SECONDS", "0"))

# Export: timeout for fetching remotely linked images
EXPORT_FETCH_TIMEOUT = float(os.getenv("EXPORT_FETCH_TIMEOUT", "10"))
