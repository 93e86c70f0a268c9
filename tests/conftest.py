"""
Pytest configuration and fixtures for Quizroom tests.
"""
import sys
import os

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
import pytest_asyncio
import httpx
from sqlalchemy.pool import StaticPool

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from db.session import Database
from models.enums import Role
from models.user import User
from services.auth_service import Principal
from services.quiz_service import QuizService

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

ADMIN_UID = "admin-uid"
USER_UID = "user-uid"
OTHER_UID = "other-uid"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        AUTH_SECRET="test-secret",
        ADMIN_EMAILS=["admin@example.com"],
        ENV="test",
        LOG_JSON=False,
    )


@pytest_asyncio.fixture
async def database(settings):
    # One shared connection so every session sees the same in-memory database
    db = Database(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
def app(settings, database):
    from api.main import create_app
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def verifier(app):
    return app.state.verifier


async def _add_user(database, uid, email, display_name, role):
    async with database.session() as session:
        user = User(auth_uid=uid, email=email, display_name=display_name, role=role)
        session.add(user)
        await session.commit()
        return Principal.from_user(user)


@pytest_asyncio.fixture
async def admin(database):
    return await _add_user(database, ADMIN_UID, "admin@example.com", "Admin User", Role.ADMIN)


@pytest_asyncio.fixture
async def user(database):
    return await _add_user(database, USER_UID, "user@example.com", "John Doe", Role.USER)


@pytest_asyncio.fixture
async def other_user(database):
    return await _add_user(database, OTHER_UID, "other@example.com", "Jane Roe", Role.USER)


@pytest.fixture
def auth_headers(verifier):
    def _headers(uid):
        return {"Authorization": f"Bearer {verifier.issue(uid)}"}
    return _headers


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(ADMIN_UID)


@pytest.fixture
def user_headers(user, auth_headers):
    return auth_headers(USER_UID)


@pytest.fixture
def other_headers(other_user, auth_headers):
    return auth_headers(OTHER_UID)


@pytest.fixture
def sample_questions():
    """Two questions worth 1 point each; correct answers are 0 then 1"""
    return [
        {
            "question": "What is 2+2?",
            "options": ["4", "3", "5", "6"],
            "correct_answer": 0,
        },
        {
            "question": "Which keyword declares a constant in JavaScript?",
            "options": ["var", "const", "let"],
            "correct_answer": 1,
            "explanation": "const bindings cannot be reassigned.",
        },
    ]


@pytest.fixture
def make_quiz(database, admin, sample_questions):
    """Create a quiz through the service layer and return its id."""
    async def _make(title="Math Basics", category="Math", is_published=True, questions=None, **kwargs):
        async with database.session() as session:
            detail = await QuizService(session).create_quiz(
                admin,
                title=title,
                description=f"{title} quiz",
                category=category,
                questions=questions if questions is not None else sample_questions,
                is_published=is_published,
                **kwargs,
            )
            return detail.quiz.id
    return _make
