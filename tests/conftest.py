import os

# Configure before any quizhub module reads the environment
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quizhub.app import app  # noqa: E402
from quizhub.core.database import get_db, init_db  # noqa: E402
from quizhub.core.dependencies import (  # noqa: E402
    get_auth_rate_limiter,
    get_token_manager,
    get_user_manager,
)
from quizhub.schemas.user import Role  # noqa: E402
from quizhub.utils.auth_service import AuthService  # noqa: E402
from quizhub.utils.rate_limiter import AuthRateLimiter  # noqa: E402
from quizhub.utils.token_manager import TokenManager  # noqa: E402
from quizhub.utils.user_manager import UserManager  # noqa: E402

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"
# Minimum bcrypt cost keeps the suite fast
TEST_ROUNDS = 4
AUTH_RATE_LIMIT = "5 per 15 minutes"


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def token_manager() -> TokenManager:
    return TokenManager(ACCESS_SECRET, REFRESH_SECRET)


@pytest.fixture
def user_manager(db_session) -> UserManager:
    return UserManager(db_session, rounds=TEST_ROUNDS)


@pytest.fixture
def auth_service(user_manager, token_manager) -> AuthService:
    return AuthService(user_manager, token_manager)


@pytest.fixture
def auth_rate_limiter() -> AuthRateLimiter:
    return AuthRateLimiter(AUTH_RATE_LIMIT)


@pytest.fixture
def client(db_session, user_manager, token_manager, auth_rate_limiter):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_auth_rate_limiter] = lambda: auth_rate_limiter
    app.dependency_overrides[get_user_manager] = lambda: user_manager
    app.dependency_overrides[get_token_manager] = lambda: token_manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(user_manager, token_manager) -> dict:
    admin = user_manager.create_user(
        "admin@quizhub.io", "admin-password", name="Admin", role=Role.ADMIN
    )
    pair = token_manager.issue_pair(admin)
    return {"Authorization": f"Bearer {pair.access_token}"}
