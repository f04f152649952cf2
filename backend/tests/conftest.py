"""
Shared fixtures for the visa evaluation engine tests.

Engine state lives in a fresh EngineContext per test. The database session
is a mock so no PostgreSQL instance is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from visa_engine.core.context import EngineContext
from visa_engine.core.enums import ApplicationType
from visa_engine.deps import get_session
from visa_engine.main import app
from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.services.evaluation_service import VisaEvaluationService
from visa_engine.services.rule_engine.base import EvaluationContext


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def engine_context():
    """Engine context with immediate step transitions."""
    context = EngineContext.new(step_delay=0)
    yield context
    await context.close()


@pytest.fixture
def service(engine_context):
    return VisaEvaluationService(engine_context)


@pytest.fixture
def mock_db():
    """Async session mock supporting add/flush/refresh/execute and savepoints."""
    db = MagicMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()

    result = MagicMock()
    result.scalars.return_value.all.return_value = []
    result.scalar_one.return_value = 0
    result.scalar_one_or_none.return_value = None
    db.execute = AsyncMock(return_value=result)

    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested.return_value = savepoint
    return db


@pytest.fixture
def client(mock_db):
    """TestClient running the app lifespan with the session overridden."""

    async def override_session():
        yield mock_db

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def e1_extension_applicant():
    """E-1 lecturer extending with too few hours, too much online and a short contract."""
    return {
        "nationality": "CN",
        "educationLevel": "master",
        "position": "lecturer",
        "institutionTier": "university",
        "institutionType": "UNIVERSITY",
        "experienceYears": 5,
        "weeklyHours": 4,
        "onlinePercentage": 60,
        "contractDuration": 6,
    }


@pytest.fixture
def e2_native_applicant():
    """E-2 applicant meeting every requirement."""
    return {
        "nationality": "US",
        "educationLevel": "bachelor",
        "languageScores": {"english": "NATIVE"},
        "teachingCertification": True,
        "teachingExperience": 4,
    }


@pytest.fixture
def make_context():
    """Build an evaluation context from keyword applicant fields."""

    def build(application_type: ApplicationType = ApplicationType.NEW, **fields) -> EvaluationContext:
        return EvaluationContext(
            applicant=ApplicantData.model_validate(fields),
            application_type=application_type,
        )

    return build
