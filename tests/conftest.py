"""Test fixtures: a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite). StaticPool
   pins the single connection so every session sees the same database.
2. Tables come from the ORM metadata (create_all), no migrations needed.
3. The app is built with create_app(), injecting the test session
   factory and a RecordingNotifier, so no SMTP and no globals to patch.

bcrypt rounds are dropped to 4 before anything is imported; hashing at
the production work factor would dominate the suite's runtime.
"""

import os

os.environ.setdefault("NEXUSADMIN_ENVIRONMENT", "test")
os.environ.setdefault("NEXUSADMIN_BCRYPT_ROUNDS", "4")
os.environ.setdefault("NEXUSADMIN_DATABASE_URL", "sqlite+aiosqlite://")

import uuid  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from nexusadmin.auth.password import hash_password_async  # noqa: E402
from nexusadmin.config import Settings  # noqa: E402
from nexusadmin.db.engine import build_session_factory, create_all  # noqa: E402
from nexusadmin.db.models import UserRole, UserStatus  # noqa: E402
from nexusadmin.main import create_app  # noqa: E402
from nexusadmin.stores.users import UserStore  # noqa: E402

DEFAULT_PASSWORD = "Passw0rd"


class RecordingNotifier:
    """Notifier double that remembers what would have been sent."""

    def __init__(self):
        self.invites: list[dict] = []
        self.welcomes: list[dict] = []

    async def send_invite(self, email: str, token: str, role: str, link: str) -> None:
        self.invites.append({"email": email, "token": token, "role": role, "link": link})

    async def send_welcome(self, email: str, name: str) -> None:
        self.welcomes.append({"email": email, "name": name})


class FailingNotifier:
    """Notifier whose every send blows up (mail server down)."""

    async def send_invite(self, email: str, token: str, role: str, link: str) -> None:
        raise ConnectionError("SMTP unavailable")

    async def send_welcome(self, email: str, name: str) -> None:
        raise ConnectionError("SMTP unavailable")


@pytest.fixture()
def test_settings():
    return Settings(
        environment="test",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        smtp_user="",
        smtp_password="",
        frontend_url="http://frontend.test",
    )


@pytest_asyncio.fixture()
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def app(test_settings, session_factory, notifier):
    return create_app(test_settings, session_factory=session_factory, notifier=notifier)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ─── Seeding ────────────────────────────────────────────


@pytest_asyncio.fixture()
async def make_user(session_factory):
    """Factory: insert a user directly through the store."""

    async def _make(
        *,
        role: UserRole = UserRole.STAFF,
        status: UserStatus = UserStatus.ACTIVE,
        email: str | None = None,
        name: str = "Test User",
        password: str = DEFAULT_PASSWORD,
    ):
        email = email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        password_hash = await hash_password_async(password, 4)
        async with session_factory() as db:
            user = await UserStore(db).create(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                status=status,
            )
            await db.commit()
            return user

    return _make


@pytest.fixture()
def auth_headers(app):
    """Factory: Bearer headers for a user, signed with the app's codec."""

    def _headers(user) -> dict[str, str]:
        token = app.state.token_codec.issue(str(user.id), user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture()
async def admin(make_user):
    return await make_user(role=UserRole.ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture()
def admin_headers(admin, auth_headers):
    return auth_headers(admin)
