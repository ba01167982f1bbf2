import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Find .env file in project root (parent of api/, core/, etc.)
project_root = Path(__file__).parent
load_dotenv(project_root / '.env')


def _env_int(name: str, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"WARNING: {name}={raw!r} is not an integer, using {default}")
        return default


def _env_float(name: str, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"WARNING: {name}={raw!r} is not a number, using {default}")
        return default


# Cloud SQL / PostgreSQL connection for the reference corpora
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")

# Cloud SQL connection via Unix socket (when using Cloud SQL Proxy)
CLOUD_SQL_CONNECTION_NAME = os.getenv("CLOUD_SQL_CONNECTION_NAME")

DB_POOL_MAX_CONN = _env_int("DB_POOL_MAX_CONN", 10)

# Reference data cache. A TTL of 0 or unset keeps corpora until invalidated.
REFERENCE_CACHE_TTL_SECONDS = _env_float("REFERENCE_CACHE_TTL_SECONDS", None) or None
REFERENCE_FETCH_TIMEOUT_SECONDS = _env_float("REFERENCE_FETCH_TIMEOUT_SECONDS", 30.0)

# Extra allergen false positives, merged with the built-in denylist
ALLERGEN_FALSE_POSITIVES = [
    item.strip()
    for item in os.getenv("ALLERGEN_FALSE_POSITIVES", "").split(",")
    if item.strip()
]

# Handle ALLERGEN_FALSE_POSITIVES_FILE - convert relative path to absolute
_denylist_file = os.getenv("ALLERGEN_FALSE_POSITIVES_FILE")
if _denylist_file:
    denylist_path = Path(_denylist_file)
    if not denylist_path.is_absolute():
        denylist_path = project_root / _denylist_file
    ALLERGEN_FALSE_POSITIVES_FILE = str(denylist_path.resolve())
else:
    ALLERGEN_FALSE_POSITIVES_FILE = None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
