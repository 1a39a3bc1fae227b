import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/jobly.db"
DEFAULT_LOG_LEVEL = "INFO"


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def normalize_database_url(url: str) -> str:
    """Point bare Postgres URLs at the psycopg driver; leave others alone."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def get_database_url() -> str:
    url = os.getenv("JOBLY_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    return normalize_database_url(url)


def get_log_level() -> str:
    return os.getenv("JOBLY_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def get_log_dir() -> Optional[Path]:
    log_dir = os.getenv("JOBLY_LOG_DIR")
    return Path(log_dir) if log_dir else None
