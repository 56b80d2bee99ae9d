import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.dialects.sqlite import base as sqlite_base
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401 (registers models with Base.metadata)
from app.core.config import settings
from app.core.database import Base, get_db
from app.main import app as fastapi_app
from app.services.auth import create_access_token, create_user

# Enable debug mode for tests (allows non-HTTPS cookies in TestClient)
settings.DEBUG = True

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL-specific types (JSONB)
# ---------------------------------------------------------------------------
sqlite_base.SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)

# In-memory SQLite for tests; no PostgreSQL needed
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "securepassword123"


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def override_db(db):
    """Route the app's DB dependency to the test session."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(override_db):
    """TestClient with overridden DB dependency."""
    return TestClient(override_db)


@pytest.fixture
def user(db):
    return create_user(db, email="owner@example.com", password=TEST_PASSWORD, full_name="Form Owner")


@pytest.fixture
def other_user(db):
    return create_user(db, email="someone@example.com", password=TEST_PASSWORD)


@pytest.fixture
def token(user) -> str:
    return create_access_token(user.id)


@pytest.fixture
def auth_header(token) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_header(other_user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture
def user_password() -> str:
    return TEST_PASSWORD
