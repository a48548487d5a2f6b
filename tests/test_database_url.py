import pytest
from sqlalchemy import text
from sqlalchemy.engine import make_url

from src.core.database import build_engine, resolve_async_database_url


@pytest.mark.parametrize(
    ("raw", "driver"),
    [
        ("postgres://shop:secret@db:5432/tailor", "postgresql+asyncpg"),
        ("postgresql+psycopg2://shop:secret@db:5432/tailor", "postgresql+asyncpg"),
        ("mysql+pymysql://shop:secret@db:3306/tailor", "mysql+asyncmy"),
        ("mariadb://shop:secret@db:3306/tailor", "mysql+asyncmy"),
        ("sqlite:///./tailor.db", "sqlite+aiosqlite"),
    ],
)
def test_sync_urls_move_to_async_driver(raw, driver):
    assert make_url(resolve_async_database_url(raw)).drivername == driver


def test_coercion_keeps_credentials_and_query():
    url = make_url(resolve_async_database_url("mysql://shop:s3cret@db:3306/tailor?charset=utf8mb4"))
    assert url.password == "s3cret"
    assert url.database == "tailor"
    assert url.query["charset"] == "utf8mb4"


def test_async_url_passes_through_untouched():
    assert resolve_async_database_url("sqlite+aiosqlite:///./tailor.db") == "sqlite+aiosqlite:///./tailor.db"


def test_unsupported_dialect_is_named():
    with pytest.raises(ValueError, match="mssql"):
        resolve_async_database_url("mssql+pyodbc://shop:secret@db:1433/tailor")


@pytest.mark.asyncio
async def test_sqlite_engine_enforces_foreign_keys():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    try:
        async with engine.connect() as conn:
            assert (await conn.execute(text("PRAGMA foreign_keys"))).scalar() == 1
    finally:
        await engine.dispose()
