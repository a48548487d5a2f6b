"""Pre-flight check for a tailor shop deployment: database, schema, timezone and uploads."""

import asyncio
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from src.core.config import settings  # noqa: E402
from src.core.database import build_engine, resolve_async_database_url  # noqa: E402

DB_LABELS = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "sqlite": "SQLite",
}
REQUIRED_TABLES = ("users", "service_types", "appointments", "orders", "notifications")


async def verify_database() -> bool:
    print("-" * 30)
    try:
        async_url = resolve_async_database_url(settings.database_url)
    except ValueError as exc:
        print(f"❌ Unsupported database configuration: {exc}")
        return False

    url = make_url(async_url)
    label = DB_LABELS.get(url.get_backend_name(), url.get_backend_name())
    print(f"🔍 Checking {label} at {url.render_as_string(hide_password=True)}...")

    engine = build_engine(async_url)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            tables = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
    except (SQLAlchemyError, OSError) as exc:
        print(f"❌ {label} connection failed: {exc}")
        return False
    finally:
        await engine.dispose()

    missing = [name for name in REQUIRED_TABLES if name not in tables]
    if missing:
        print(f"❌ Missing tables {', '.join(missing)}; run `alembic upgrade head`")
        return False
    print(f"✅ {label} connected, schema in place")
    return True


def verify_timezone() -> bool:
    print("-" * 30)
    try:
        ZoneInfo(settings.shop_timezone)
    except ZoneInfoNotFoundError:
        print(f"❌ Timezone {settings.shop_timezone} not found; install tzdata")
        return False
    print(f"✅ Shop timezone {settings.shop_timezone}")
    return True


def verify_media_root() -> bool:
    print("-" * 30)
    media_root = Path(settings.media_root)
    print(f"🔍 Checking upload directory {media_root.resolve()}...")
    try:
        for folder in ("designs", "gcash_proofs", "refunds"):
            (media_root / folder).mkdir(parents=True, exist_ok=True)
        probe = media_root / ".write-test"
        probe.write_bytes(b"ok")
        probe.unlink()
    except OSError as exc:
        print(f"❌ Upload directory is not writable: {exc}")
        return False
    print("✅ Upload directory is writable")
    return True


async def main() -> None:
    print("🚀 Verifying tailor shop configuration...")
    results = [await verify_database(), verify_timezone(), verify_media_root()]
    print("-" * 30)
    if all(results):
        print("🎉 Ready to take bookings.")
    else:
        print("⚠️  Problems found, check your .env file.")


if __name__ == "__main__":
    asyncio.run(main())
