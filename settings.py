"""Runtime configuration.

All values come from the environment (a local .env file is loaded first):

  DATABASE_URL      async SQLAlchemy URL (sqlite+aiosqlite or postgresql+asyncpg)
  DB_POOL_SIZE      PostgreSQL pool size (default 5)
  DB_MAX_OVERFLOW   PostgreSQL pool overflow (default 10)
  DB_POOL_TIMEOUT   seconds to wait for a pooled connection (default 30)
  DB_ECHO           "true" to log SQL
  LOG_LEVEL         root log level (default INFO)
  IMPORT_MAX_BYTES  largest accepted CSV upload (default 5 MB)
  CORS_ORIGINS      comma-separated frontend origins
  HOST / PORT       bind address for `crm.py serve`

Usage:
    import settings
    settings.configure_logging()
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./telesales.db"


def database_url() -> str:
    """Return DATABASE_URL rewritten to an async driver if needed."""
    url = os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL
    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


DB_POOL_SIZE = _int_env("DB_POOL_SIZE", 5)
DB_MAX_OVERFLOW = _int_env("DB_MAX_OVERFLOW", 10)
DB_POOL_TIMEOUT = _int_env("DB_POOL_TIMEOUT", 30)
DB_ECHO = os.environ.get("DB_ECHO", "false").lower() == "true"

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
IMPORT_MAX_BYTES = _int_env("IMPORT_MAX_BYTES", 5 * 1024 * 1024)
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]
HOST = os.environ.get("HOST", "127.0.0.1")
PORT = _int_env("PORT", 8000)


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once, from the process entry point."""
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")
