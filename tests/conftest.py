import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from proofbench.core.enum import UserRole
from proofbench.core.security import SecurityService
from proofbench.db.models.database import (
    Base,
    Courses,
    Profiles,
    Sections,
    Videos,
)
from proofbench.db.session import enable_sqlite_foreign_keys, get_session


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_profile(db):
    async def _make(role=UserRole.STUDENT, email=None, full_name="Test User"):
        profile = Profiles(
            email=email or f"{uuid.uuid4().hex[:10]}@proofbench.io",
            full_name=full_name,
            role=role,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_course(db):
    """Course with `videos_per_section` videos in each of `sections` sections."""

    async def _make(
        creator,
        title="Python Basics",
        sections=1,
        videos_per_section=2,
        published=True,
        duration=100,
    ):
        course = Courses(title=title, created_by=creator.id, published=published)
        db.add(course)
        await db.flush()

        videos = []
        for s in range(sections):
            section = Sections(course_id=course.id, name=f"Section {s}", order_index=s)
            db.add(section)
            await db.flush()
            for v in range(videos_per_section):
                video = Videos(
                    section_id=section.id,
                    title=f"Video {s}.{v}",
                    video_url=f"https://youtu.be/vid{s}x{v}",
                    duration=duration,
                    order_index=v,
                )
                db.add(video)
                videos.append(video)

        await db.commit()
        return course, videos

    return _make


@pytest.fixture
async def student(make_profile):
    return await make_profile(UserRole.STUDENT, email="student@proofbench.io")


@pytest.fixture
async def admin(make_profile):
    return await make_profile(UserRole.ADMIN, email="admin@proofbench.io")


@pytest.fixture
async def superadmin(make_profile):
    return await make_profile(UserRole.SUPERADMIN, email="root@proofbench.io")


@pytest.fixture
def auth_headers():
    async def _headers(profile):
        token = await SecurityService().create_access_token(str(profile.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def client(session_factory):
    from proofbench.main import app

    async def _override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
