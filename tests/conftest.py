from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tripdesk.db.session import get_session
from tripdesk.main import app
from tripdesk.models import Base
from tripdesk.schemas.booking import PassengerBookingIn
from tripdesk.schemas.fleet import BusIn
from tripdesk.schemas.people import AddressIn, PersonIn
from tripdesk.schemas.trip import TripIn
from tripdesk.services import fleet, people, trips
from tripdesk.services.auth import create_access_token


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tripdesk.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # SQLAlchemy emits BEGIN itself; foreign keys behave as on Postgres
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        # writers queue up on the database lock instead of failing on upgrade
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def call(sessionmaker):
    """Run one service function on a fresh session."""

    async def _call(fn, *args, **kwargs):
        async with sessionmaker() as db:
            return await fn(db, *args, **kwargs)

    return _call


@pytest.fixture
def count(sessionmaker):
    async def _count(model, *where):
        async with sessionmaker() as db:
            return await db.scalar(sa_select(func.count()).select_from(model).where(*where))

    return _count


@pytest.fixture
async def world(call):
    """A trip on bus 101-ABC (40 seats) plus the people and places bookings need."""
    bus = await call(fleet.create_bus, BusIn(model="Marcopolo G7", plate="101-ABC", capacity=40))
    trip = await call(
        trips.create_trip,
        TripIn(
            departure_at=datetime(2024, 5, 10, 8, 0, tzinfo=timezone.utc),
            arrival_at=datetime(2024, 5, 12, 18, 0, tzinfo=timezone.utc),
            bus_ids=[bus.id],
        ),
    )
    ana = await call(people.create_person, PersonIn(name="Ana Souza", national_id="111", phones=["555-0101"]))
    bruno = await call(people.create_person, PersonIn(name="Bruno Lima", national_id="222"))
    carla = await call(people.create_person, PersonIn(name="Carla Dias", national_id="333"))
    home = await call(people.create_address, AddressIn(street="Rua das Flores", number="10", city="Curitiba", state="PR"))
    hotel = await call(people.create_address, AddressIn(street="Av. Atlantica", number="1702", city="Rio de Janeiro", state="RJ"))
    driver_person = await call(people.create_person, PersonIn(name="Davi Rocha", national_id="444"))
    driver = await call(people.create_affiliate, "driver", driver_person.id)
    return SimpleNamespace(bus=bus, trip=trip, ana=ana, bruno=bruno, carla=carla, home=home, hotel=hotel, driver=driver)


@pytest.fixture
def passenger(world):
    """Build a PassengerBookingIn for ``person`` on the world trip."""

    def _passenger(person, **overrides):
        data = dict(
            person_id=person.id,
            trip_id=world.trip.id,
            pickup_address_id=world.home.id,
            delivery_address_id=world.hotel.id,
            price="350.00",
            payment_method="PIX",
        )
        data.update(overrides)
        return PassengerBookingIn(**data)

    return _passenger


@pytest.fixture
async def client(sessionmaker):
    async def _session():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        ac.headers["Authorization"] = f"Bearer {create_access_token('front-desk')}"
        yield ac
    app.dependency_overrides.clear()
