import pytest
from todosvc.adapters.sql.engine import build_engine, database_url
from todosvc.config import Settings

ENV_VARS = [
    "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME", "DB_SSLMODE", "DATABASE_URL",
    "DB_MAX_IDLE_CONNS", "DB_MAX_OPEN_CONNS", "DB_CONN_MAX_LIFETIME_MIN",
    "GRPC_PORT", "HTTP_PORT", "REQUEST_TIMEOUT_SECONDS", "SHUTDOWN_GRACE_SECONDS", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = Settings.from_env(dotenv=False)

    assert (s.db_host, s.db_port, s.db_name, s.db_sslmode) == ("localhost", 5432, "todo_db", "disable")
    assert (s.max_idle_conns, s.max_open_conns, s.conn_max_lifetime_min) == (10, 100, 30)
    assert (s.grpc_port, s.http_port) == (50051, 8080)
    assert s.request_timeout is None
    assert s.database_url is None


def test_env_overrides_and_bad_ints_fall_back(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("HTTP_PORT", "9090")
    monkeypatch.setenv("GRPC_PORT", "not-a-port")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = Settings.from_env(dotenv=False)

    assert s.db_host == "db.internal"
    assert s.http_port == 9090
    assert s.grpc_port == 50051
    assert s.request_timeout == 2.5
    assert s.log_level == "DEBUG"


def test_postgres_url_from_parts():
    url = database_url(Settings(db_host="h", db_port=6543, db_user="u", db_password="p", db_name="n", db_sslmode="require"))

    assert url.drivername == "postgresql+psycopg"
    assert (url.host, url.port, url.username, url.database) == ("h", 6543, "u", "n")
    assert url.query["sslmode"] == "require"


def test_database_url_wins(tmp_path):
    s = Settings(database_url=f"sqlite:///{tmp_path / 'x.db'}")

    assert database_url(s).get_backend_name() == "sqlite"
    engine = build_engine(s)
    assert engine.dialect.name == "sqlite"
    engine.dispose()


def test_pool_is_bounded():
    engine = build_engine(Settings(max_idle_conns=5, max_open_conns=20, conn_max_lifetime_min=15))

    assert engine.pool.size() == 5
    engine.dispose()
