# catalog_api/config.py
from os import getenv

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Elasticsearch
ES_HOST = getenv("ES_HOST", "http://elasticsearch:9200")
ES_INDEX = getenv("ES_INDEX", "products")
ES_REQUEST_TIMEOUT = int(getenv("ES_REQUEST_TIMEOUT", "30"))

# Relational store (Postgres-compatible, e.g. PostgreSQL or CockroachDB)
DB_HOST = getenv("DB_HOST", "postgres")
DB_PORT = int(getenv("DB_PORT", "5432"))
DB_USER = getenv("DB_USER", "postgres")
DB_PASSWORD = getenv("DB_PASSWORD", "rootpassword")
DB_NAME = getenv("DB_NAME", "appdb")
DB_POOL_SIZE = int(getenv("DB_POOL_SIZE", "10"))

# Upstream product feed (DummyJSON compatible)
SOURCE_API_URL = getenv("SOURCE_API_URL", "https://dummyjson.com/products")
SOURCE_PAGE_SIZE = int(getenv("SOURCE_PAGE_SIZE", "100"))
SOURCE_TIMEOUT = int(getenv("SOURCE_TIMEOUT", "30"))

# Seeding
SEED_ON_STARTUP = _flag("SEED_ON_STARTUP", "true")
SEED_BATCH_SIZE = int(getenv("SEED_BATCH_SIZE", "20"))
SEED_RETRY_DELAY = float(getenv("SEED_RETRY_DELAY", "5"))
SEED_MAX_RETRY_DELAY = float(getenv("SEED_MAX_RETRY_DELAY", "60"))
# 0 retries forever
SEED_MAX_ATTEMPTS = int(getenv("SEED_MAX_ATTEMPTS", "0"))

# Defaults for the API
DEFAULT_PAGE_SIZE = int(getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(getenv("MAX_PAGE_SIZE", "100"))
HOST = getenv("HOST", "0.0.0.0")
PORT = int(getenv("PORT", "3000"))

LOG_LEVEL = getenv("LOG_LEVEL", "INFO").upper()
