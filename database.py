import logging
import time

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config import get_settings

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    settings = get_settings()
    connect_args: dict[str, object] = {}
    if settings.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    from sqlalchemy import create_engine

    eng = create_engine(
        settings.database_url, connect_args=connect_args, pool_pre_ping=True
    )
    if settings.database_url.startswith("sqlite"):
        event.listen(eng, "connect", _enable_sqlite_pragmas)
    return eng


def _enable_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def wait_for_database(eng: Engine, attempts: int, delay_secs: float) -> None:
    """Block until ``eng`` accepts a connection or ``attempts`` run out."""
    target = eng.url.render_as_string(hide_password=True)
    last_error: OperationalError | None = None
    for attempt in range(1, attempts + 1):
        try:
            with eng.connect() as conn:
                conn.execute(text("SELECT 1"))
        except OperationalError as exc:
            last_error = exc
            logger.warning(
                f"db_connect_failed: url={target} attempt={attempt}/{attempts} error={exc}"
            )
            if attempt < attempts:
                time.sleep(delay_secs)
            continue
        logger.info(f"db_connected: url={target} attempt={attempt}")
        return
    raise RuntimeError(
        f"failed to connect to database after {attempts} attempts"
    ) from last_error


engine = _create_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass
