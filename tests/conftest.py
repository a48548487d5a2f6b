from datetime import date, time
from pathlib import Path
import os
import sys

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from src.core.database import Base, build_engine  # noqa: E402
from src.core.storage import ImageUpload, LocalFileStorage  # noqa: E402
from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.appointments.repository import AppointmentRepository  # noqa: E402
from src.modules.appointments.service import AppointmentService  # noqa: E402
from src.modules.catalog.models import ServiceType  # noqa: E402,F401
from src.modules.notifications.models import Notification  # noqa: E402,F401
from src.modules.notifications.service import NotificationSink  # noqa: E402
from src.modules.orders.models import Order  # noqa: E402
from src.modules.orders.repository import OrderRepository  # noqa: E402
from src.modules.orders.service import OrderService  # noqa: E402
from src.modules.schedule.conflicts import ConflictChecker  # noqa: E402
from src.modules.users.models import User  # noqa: E402
from src.shared.enums import AppointmentState, AppointmentStatus, OrderStatus, SizeLabel, UserRole  # noqa: E402

BOOKING_DATE = date(2031, 3, 14)
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest_asyncio.fixture
async def db_session():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "media")


@pytest.fixture
def png():
    def _png(field: str = "gcash_proof") -> ImageUpload:
        return ImageUpload(field=field, content_type="image/png", content=PNG_BYTES)

    return _png


async def _add_user(db_session, name: str, email: str, role: UserRole) -> User:
    user = User(name=name, email=email, phone="09171234567", role=role, is_active=True)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def customer(db_session):
    return await _add_user(db_session, "Maria Santos", "maria@example.com", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def other_customer(db_session):
    return await _add_user(db_session, "Jose Reyes", "jose@example.com", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def admin(db_session):
    return await _add_user(db_session, "Shop Admin", "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def appointment_service(db_session, storage):
    appointments = AppointmentRepository(db_session)
    orders = OrderRepository(db_session)
    return AppointmentService(
        appointments,
        orders,
        ConflictChecker(appointments, orders),
        NotificationSink(db_session),
        storage,
    )


@pytest.fixture
def order_service(db_session):
    orders = OrderRepository(db_session)
    return OrderService(orders, ConflictChecker(AppointmentRepository(db_session), orders), NotificationSink(db_session))


@pytest.fixture
def make_appointment(db_session, customer):
    async def _make(
        appointment_date: date = BOOKING_DATE,
        appointment_time: time = time(9, 0),
        status: str = AppointmentStatus.PENDING.value,
        state: str | None = AppointmentState.ACTIVE.value,
        user: User | None = None,
        **fields,
    ) -> Appointment:
        appointment = Appointment(
            user_id=(user or customer).user_id,
            service_type="Uniform",
            sizes={SizeLabel.SMALL: 2, SizeLabel.MEDIUM: 1},
            total_quantity=3,
            preferred_due_date=date(2031, 4, 1),
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            status=status,
            state=state,
            gcash_proof="gcash_proofs/seed.png",
            **fields,
        )
        db_session.add(appointment)
        await db_session.commit()
        return appointment

    return _make


@pytest.fixture
def make_order(db_session, make_appointment):
    async def _make(
        appointment: Appointment | None = None,
        status: OrderStatus = OrderStatus.PENDING,
        queue_number: int | None = None,
        **fields,
    ) -> Order:
        if appointment is None:
            appointment = await make_appointment(status=AppointmentStatus.ACCEPTED.value)
        order = Order(
            appointment=appointment,
            status=status,
            queue_number=queue_number,
            handled=fields.pop("handled", False),
            **fields,
        )
        db_session.add(order)
        await db_session.commit()
        return order

    return _make
