from __future__ import annotations
import logging
import sqlalchemy as db
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from todosvc.config import Settings
from todosvc.domain.errors import StorageError

logger = logging.getLogger(__name__)


def database_url(settings: Settings) -> URL:
    """DATABASE_URL wygrywa; w przeciwnym razie URL PostgreSQL złożony z DB_*."""
    if settings.database_url:
        return make_url(settings.database_url)
    return URL.create(
        "postgresql+psycopg",
        username=settings.db_user,
        password=settings.db_password,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
        query={"sslmode": settings.db_sslmode},
    )


def build_engine(settings: Settings) -> Engine:
    """
    Tworzy silnik SQLAlchemy z ograniczoną pulą połączeń.

    - pool_size      = max idle (połączenia trzymane otwarte),
    - max_overflow   = max open - max idle (twardy limit otwartych połączeń),
    - pool_recycle   = maksymalny czas życia połączenia.

    SQLite (testy, lokalnie) używa domyślnej puli dialektu.
    """
    url = database_url(settings)
    if url.get_backend_name() == "sqlite":
        return db.create_engine(url)

    max_open = max(settings.max_open_conns, 1)
    pool_size = min(max(settings.max_idle_conns, 1), max_open)
    logger.info(
        "db pool: pool_size=%d max_overflow=%d recycle=%dmin",
        pool_size, max_open - pool_size, settings.conn_max_lifetime_min,
    )
    return db.create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_open - pool_size,
        pool_recycle=settings.conn_max_lifetime_min * 60,
        pool_pre_ping=True,
    )


def ping(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(db.select(1))
    except SQLAlchemyError as e:
        logger.error("db ping failed: %s", e)
        raise StorageError("ping database", e) from e
