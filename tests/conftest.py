"""
Pytest fixtures for test database, client, authentication and seed data.

Each test gets a fresh in-memory SQLite database (aiosqlite), so there is
nothing to clean up between tests. Redis is disabled before the app is
imported so the booking cache is a no-op.
"""

import itertools
import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

os.environ.setdefault("REDIS_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from hotel_booking.main import app
from hotel_booking.db.base import Base
from hotel_booking.db.session import get_db
from hotel_booking.core.security import create_access_token, hash_password
from hotel_booking.domain.entities import TicketStatus
from hotel_booking.models import (
    Booking,
    Enrollment,
    Hotel,
    Room,
    Session,
    Ticket,
    TicketType,
    User,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh schema on a private in-memory database and yield a session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class Factory:
    """Seeds rows directly through the session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = itertools.count(1)
        self._hashes = {}

    def _hash(self, password: str) -> str:
        # bcrypt is slow on purpose; hash each test password once
        if password not in self._hashes:
            self._hashes[password] = hash_password(password)
        return self._hashes[password]

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def create_user(self, email: Optional[str] = None, password: str = "testpassword123") -> User:
        n = next(self._seq)
        return await self._save(User(
            email=email or f"user{n}@example.com",
            hashed_password=self._hash(password),
        ))

    async def create_session_token(self, user: User) -> str:
        token = create_access_token(data={"sub": str(user.id)})
        await self._save(Session(user_id=user.id, token=token))
        return token

    async def create_enrollment(self, user: User) -> Enrollment:
        n = next(self._seq)
        return await self._save(Enrollment(
            name=f"Attendee {n}",
            cpf=f"{n:011d}",
            birthday=date(1995, 5, 17),
            phone="(21) 98999-9999",
            user_id=user.id,
        ))

    async def create_ticket_type(self, is_remote: bool = False, includes_hotel: bool = True) -> TicketType:
        return await self._save(TicketType(
            name="Remote" if is_remote else "In person",
            price=Decimal("600.00") if includes_hotel else Decimal("250.00"),
            is_remote=is_remote,
            includes_hotel=includes_hotel,
        ))

    async def create_ticket(
        self,
        enrollment: Enrollment,
        ticket_type: TicketType,
        status: TicketStatus = TicketStatus.PAID,
    ) -> Ticket:
        return await self._save(Ticket(
            enrollment_id=enrollment.id,
            ticket_type_id=ticket_type.id,
            status=status,
        ))

    async def create_hotel(self) -> Hotel:
        n = next(self._seq)
        return await self._save(Hotel(name=f"Hotel {n}", image="https://example.com/hotel.png"))

    async def create_room(self, hotel: Hotel, capacity: int = 3) -> Room:
        n = next(self._seq)
        return await self._save(Room(name=f"{100 + n}", capacity=capacity, hotel_id=hotel.id))

    async def create_booking(self, user: User, room: Room) -> Booking:
        return await self._save(Booking(user_id=user.id, room_id=room.id))

    async def create_eligible_user(self, **ticket_kwargs) -> User:
        """User with an enrollment and a ticket (paid, in person, with hotel unless overridden)."""
        status = ticket_kwargs.pop("status", TicketStatus.PAID)
        user = await self.create_user()
        enrollment = await self.create_enrollment(user)
        ticket_type = await self.create_ticket_type(**ticket_kwargs)
        await self.create_ticket(enrollment, ticket_type, status=status)
        return user


@pytest.fixture
def factory(db_session: AsyncSession) -> Factory:
    return Factory(db_session)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(factory: Factory) -> User:
    return await factory.create_eligible_user()


@pytest_asyncio.fixture
async def auth_headers(factory: Factory, test_user: User) -> dict:
    """Authorization headers with a Bearer token backed by a session row."""
    return bearer(await factory.create_session_token(test_user))


@pytest_asyncio.fixture
async def hotel(factory: Factory) -> Hotel:
    return await factory.create_hotel()


@pytest_asyncio.fixture
async def room(factory: Factory, hotel: Hotel) -> Room:
    return await factory.create_room(hotel, capacity=3)


@pytest_asyncio.fixture
async def full_room(factory: Factory, hotel: Hotel) -> Room:
    """A capacity-1 room already taken by another user."""
    room = await factory.create_room(hotel, capacity=1)
    occupant = await factory.create_user()
    await factory.create_booking(occupant, room)
    return room


@pytest.fixture
def headers_for(factory: Factory):
    """Log a user in (session row + token) and return their auth headers."""

    async def _headers_for(user: User) -> dict:
        return bearer(await factory.create_session_token(user))

    return _headers_for
