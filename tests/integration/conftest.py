import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_notification_service, get_unit_of_work
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import INotificationService


class CapturingNotificationService(INotificationService):
    """Keeps the links instead of sending them"""

    def __init__(self):
        self.reset_links = []
        self.verification_links = []
        self.password_changed = []

    async def send_password_reset(self, email: str, reset_link: str) -> None:
        self.reset_links.append((email, reset_link))

    async def send_email_verification(self, email: str, verification_link: str) -> None:
        self.verification_links.append((email, verification_link))

    async def send_password_changed(self, email: str) -> None:
        self.password_changed.append(email)

    @staticmethod
    def token_of(link: str) -> str:
        return link.split("token=", 1)[1]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
def notifier():
    return CapturingNotificationService()


@pytest_asyncio.fixture
async def app(db_session, notifier):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_notification_service] = lambda: notifier
    return app


@pytest_asyncio.fixture
async def client(app):
    from httpx import ASGITransport

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
def signup(client):
    """Registers an account through the API and returns the response body"""

    async def _signup(email="user@example.com", password="SecurePass123!", display_name="User"):
        response = await client.post(
            "/auth/signup",
            json={"email": email, "password": password, "display_name": display_name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup
