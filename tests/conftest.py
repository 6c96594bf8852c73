import pytest
import os
import tempfile
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="resume-review-")
os.environ.setdefault("OPENROUTER_API_KEY", "test-key")

from app.database import Base, get_db
from app.main import app
from app.schemas.platform import AIMessage, AIResponse
from app.services.platform_sdk import PlatformSDK, install_platform, uninstall_platform
from app.services.platform_store import PlatformStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FEEDBACK_JSON = """{
  "overallScore": 72,
  "ATS": {"score": 70, "tips": [{"type": "improve", "tip": "Add keywords from the job description"}]},
  "toneAndStyle": {"score": 80, "tips": [{"type": "good", "tip": "Confident tone", "explanation": "Uses action verbs"}]},
  "content": {"score": 65, "tips": [{"type": "improve", "tip": "Quantify results", "explanation": "Add metrics"}]},
  "structure": {"score": 75, "tips": []},
  "skills": {"score": 68, "tips": [{"type": "improve", "tip": "List cloud skills", "explanation": "AWS is missing"}]}
}"""

UPDATED_RESUME = """JANE DOE
jane@example.com

PROFESSIONAL SUMMARY
Backend engineer with 6 years of Python experience.

WORK EXPERIENCE
Acme Corp | 2019
• Cut API latency by 40% across 12 services"""


class FakeAIClient:
    """Stands in for the OpenRouter client: records calls and replays queued replies."""

    def __init__(self):
        self.calls = []
        self.replies = []
        self.error = None

    def queue(self, content):
        self.replies.append(content)

    def chat(self, messages, options=None):
        self.calls.append((messages, options))
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else ""
        return AIResponse(
            message=AIMessage(content=content),
            finish_reason="stop",
            model=options.model if options else None,
        )


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Use sessionmaker with the active connection
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def fake_ai():
    return FakeAIClient()

@pytest.fixture(scope="function")
def storage_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root

@pytest.fixture(scope="function")
def platform_factory(fake_ai, storage_root):
    def _factory(db, token=None):
        return PlatformSDK(db, token, ai_client=fake_ai, storage_root=storage_root)
    return _factory

@pytest.fixture(scope="function")
def platform(platform_factory):
    """Install the platform SDK backed by the fake AI client."""
    install_platform(platform_factory)
    yield
    uninstall_platform()

@pytest.fixture(scope="function")
def user(db_session):
    """A persisted platform account."""
    from app.services.auth import AuthService
    return AuthService(db_session).sign_up("jane@example.com", "jane", "Password123!")

@pytest.fixture(scope="function")
def store(db_session, platform):
    """A PlatformStore signed in as a fresh account."""
    store = PlatformStore(db_session)
    assert store.init(timeout=0)
    store.auth.sign_up("jane@example.com", "jane", "Password123!")
    assert store.auth.sign_in("jane@example.com", "Password123!")
    return store

@pytest.fixture(scope="function")
def client(db_session, platform_factory):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        # Startup installs the real SDK; swap in the test one
        install_platform(platform_factory)
        yield c
    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def auth_headers(client):
    """Sign up and sign in through the API, returning bearer headers."""
    client.post(
        "/api/auth/sign-up",
        json={"email": "jane@example.com", "username": "jane", "password": "Password123!"},
    )
    response = client.post("/api/auth/sign-in", json={"email": "jane@example.com", "password": "Password123!"})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
