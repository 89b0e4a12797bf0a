import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        server_port: int,
        cors_origins: list[str],
        log_level: str,
        db_connect_attempts: int,
        db_connect_delay_secs: float,
    ) -> None:
        self.database_url = database_url
        self.server_port = server_port
        self.cors_origins = cors_origins
        self.log_level = log_level
        self.db_connect_attempts = db_connect_attempts
        self.db_connect_delay_secs = db_connect_delay_secs


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BUDGET_BOOK_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _mysql_url() -> Optional[str]:
    # Only build a MySQL URL when the host is configured explicitly.
    if not os.getenv("DB_HOST"):
        return None
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "3306")
    user = os.getenv("DB_USER", "root")
    password = os.getenv("DB_PASSWORD", "password")
    name = os.getenv("DB_NAME", "budget_book")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}?charset=utf8mb4"


def _database_url() -> str:
    explicit = os.getenv("BUDGET_BOOK_DATABASE_URL")
    if explicit:
        return explicit
    mysql_url = _mysql_url()
    if mysql_url:
        return mysql_url
    default_db = _ensure_data_dir() / "budget_book.db"
    return f"sqlite:///{default_db}"


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = _database_url()
    server_port = int(os.getenv("SERVER_PORT", "8080"))
    cors_origins = _split_origins(
        os.getenv(
            "BUDGET_BOOK_CORS_ORIGINS",
            "http://localhost:5173,http://localhost:3000",
        )
    )
    log_level = os.getenv("BUDGET_BOOK_LOG_LEVEL", "INFO").upper()
    db_connect_attempts = int(os.getenv("BUDGET_BOOK_DB_CONNECT_ATTEMPTS", "30"))
    db_connect_delay_secs = float(
        os.getenv("BUDGET_BOOK_DB_CONNECT_DELAY_SECS", "1")
    )
    return Settings(
        database_url=database_url,
        server_port=server_port,
        cors_origins=cors_origins,
        log_level=log_level,
        db_connect_attempts=db_connect_attempts,
        db_connect_delay_secs=db_connect_delay_secs,
    )
