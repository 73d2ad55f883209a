# conftest.py

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import categories
import posts
from database import create_tables, get_db, make_engine, make_session_factory
from main import app
from models import Role, User
from schemas import CategoryCreate, PostCreate, Principal


# Fresh SQLite file per test so concurrent sessions really share one database
@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_blog.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return make_session_factory(test_engine)


@pytest_asyncio.fixture(scope="function")
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture(scope="function")
async def users(session_factory):
    async with session_factory() as s:
        people = {
            "admin": User(username="admin", email="admin@example.com", name="Ada Admin", role=Role.ADMIN),
            "alice": User(username="alice", email="alice@example.com", name="Alice"),
            "bob": User(username="bob", email="bob@example.com", name="Bob"),
            "ghost": User(username="ghost", email="ghost@example.com", name="Ghost", is_active=False),
        }
        s.add_all(people.values())
        await s.commit()
    return people


@pytest_asyncio.fixture(scope="function")
async def principals(users):
    return {key: Principal(id=user.id, role=user.role) for key, user in users.items()}


@pytest_asyncio.fixture(scope="function")
async def headers(users):
    return {key: {"X-User-Id": str(user.id)} for key, user in users.items()}


@pytest_asyncio.fixture(scope="function")
async def tech(session_factory, principals):
    async with session_factory() as s:
        return await categories.create_category(s, CategoryCreate(name="Tech"), principals["admin"])


@pytest_asyncio.fixture(scope="function")
async def make_post(session_factory, principals, tech):
    async def _make(title="Hello World", content="short text", author="alice", **fields):
        fields.setdefault("category", tech.id)
        async with session_factory() as s:
            draft = PostCreate(title=title, content=content, **fields)
            return await posts.create_post(s, draft, principals[author])
    return _make


# Fixture for the async HTTP client
@pytest_asyncio.fixture(scope="function")
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    # Use ASGITransport to test the FastAPI app with httpx.AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
