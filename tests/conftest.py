import os

# Settings are read at import time; keep tests off Redis and the dev database
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy.core.cache import cache_manager
from academy.core.database import create_engine_for_url, get_db, init_models
from academy.main import app
from academy.models.admin import AdminRole
from academy.services.auth_service import AuthService
from academy.services.change_feed import change_feed
from academy.services.course_service import CourseService
from academy.services.student_service import StudentService

ADMIN_EMAIL = "root@academy.co.kr"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def no_cache(monkeypatch):
    monkeypatch.setattr(cache_manager, "enabled", False)


@pytest.fixture(autouse=True)
def clean_change_feed():
    yield
    change_feed._subscribers.clear()


@pytest.fixture
async def engine(tmp_path):
    # A file database so concurrent transactions get their own connections
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'academy_test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def superadmin(db):
    return await AuthService(db).create_admin({
        "email": ADMIN_EMAIL,
        "password": ADMIN_PASSWORD,
        "name": "Root",
        "role": AdminRole.SUPERADMIN.value,
    })


@pytest.fixture
async def admin_headers(client, superadmin):
    response = await client.post(
        "/api/v1/auth/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def make_student(db):
    async def factory(name="김철수", phone="1234", **extra):
        return await StudentService(db).create_student({"name": name, "phone": phone, **extra}, "admin")
    return factory


@pytest.fixture
def make_course(db):
    async def factory(title="수학 심화", capacity=20, schedules=None, **extra):
        data = {
            "title": title,
            "instructor": "박선생",
            "capacity": capacity,
            "schedules": schedules or [{"day": "월", "start_period": 1, "end_period": 2}],
            **extra,
        }
        return await CourseService(db).create_course(data, "admin")
    return factory
