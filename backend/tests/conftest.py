"""
Pytest configuration and fixtures for testing.
"""

import tempfile
from datetime import datetime
from typing import Any, Dict, Generator
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sentinel.config import get_settings

# Settings are read at import time by the agents, so configure them first
_settings = get_settings()
_settings.anthropic_api_key = "test-key"
_settings.report_store_backend = "memory"
_settings.audio_storage_path = tempfile.mkdtemp()
_settings.audio_base_url = "http://testserver/media/podcasts"
_settings.tts_api_url = "http://tts.test"
_settings.mail_api_url = "http://mail.test/send"
_settings.mail_api_key = "mail-key"
_settings.drive_upload_url = "http://drive.test/upload"
_settings.drive_access_token = "drive-token"
_settings.collaborator_timeout_seconds = 5.0

from sentinel import dependencies  # noqa: E402
from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient, AnalysisOutcome  # noqa: E402
from sentinel.db.database import Base, init_db  # noqa: E402
from sentinel.main import app  # noqa: E402
from sentinel.schemas.report import AnalysisReport  # noqa: E402
from sentinel.schemas.teaching import TeachingAnalysisReport  # noqa: E402
from sentinel.services.podcast_pipeline import PodcastPipeline  # noqa: E402
from sentinel.services.report_store import InMemoryReportStore  # noqa: E402


@pytest.fixture(scope="session")
def test_settings() -> Any:
    """Settings shared by every test."""
    return _settings


@pytest.fixture
def sample_content_result() -> Dict[str, Any]:
    """Structured primary analysis as returned by the model."""
    return {
        "summary": "The passage proclaims God's love for the whole world and salvation through belief in the Son.",
        "scriptural_analysis": [
            {"verse": "John 3:16", "analysis": "Salvation is offered to whosoever believeth."}
        ],
        "historical_context": "Spoken by the Lord Jesus Christ to Nicodemus.",
        "fallacies": [],
        "manipulative_tactics": [],
        "identified_isms": [],
        "calvinism_analysis": [
            {
                "element": "Limited atonement",
                "description": "Not present; the text says 'the world'.",
                "evidence": "For God so loved the world",
                "infiltration_tactic": None
            }
        ],
    }


@pytest.fixture
def sample_teaching_result() -> Dict[str, Any]:
    """Structured teaching analysis as returned by the model."""
    return {
        "church_history_context": "The teaching first appears in the fifth century.",
        "promoters_demonstrators": [
            {"name": "Augustine of Hippo", "description": "Early systematizer of the doctrine."},
            {"name": "John Calvin", "description": "Popularized it during the Reformation."}
        ],
        "church_council_summary": "Discussed at the Synod of Dort.",
        "letter_of_clarification": "Dear Pastor, we write in love concerning the teaching.",
        "biblical_warnings": "2 Peter 2:1 warns of false teachers among you.",
    }


@pytest.fixture
def model_client(sample_content_result: Dict[str, Any], sample_teaching_result: Dict[str, Any]) -> Mock:
    """AnalysisModelClient stand-in answering every intent successfully."""
    responses = {
        AnalysisIntent.CONTENT_ANALYSIS: sample_content_result,
        AnalysisIntent.TEACHING_ANALYSIS: sample_teaching_result,
        AnalysisIntent.CALVINISM_DEEP_DIVE: {"analysis": "Detailed Calvinism deep dive."},
        AnalysisIntent.REPORT_CHAT: {"ai_response": "The report cites John 3:16."},
    }

    async def analyze(content: str, intent: AnalysisIntent, **options: Any) -> AnalysisOutcome:
        return AnalysisOutcome(result=dict(responses[intent]))

    client = Mock(spec=AnalysisModelClient)
    client.analyze = AsyncMock(side_effect=analyze)
    return client


@pytest.fixture
def analysis_store() -> InMemoryReportStore:
    return InMemoryReportStore(AnalysisReport)


@pytest.fixture
def teaching_store() -> InMemoryReportStore:
    return InMemoryReportStore(TeachingAnalysisReport)


@pytest.fixture
def synthesis() -> Mock:
    """Synthesis collaborator that always returns an audio URL."""
    service = Mock()
    service.synthesize = AsyncMock(return_value="http://testserver/media/podcasts/podcast-1.wav")
    return service


@pytest.fixture
def exporter() -> Mock:
    """Export collaborator that always succeeds."""
    service = Mock()
    service.send = AsyncMock(return_value="completed")
    return service


@pytest.fixture
def pipeline(teaching_store: InMemoryReportStore, synthesis: Mock, exporter: Mock) -> PodcastPipeline:
    return PodcastPipeline(teaching_store, synthesis, exporter, timeout_seconds=2.0)


@pytest.fixture
def mock_anthropic_client() -> Mock:
    """Mock AsyncAnthropic client for testing."""
    mock_client = Mock()
    mock_response = Mock()
    mock_response.content = [Mock()]
    mock_response.content[0].text = '{"summary": "Test response from Claude"}'
    mock_response.usage.input_tokens = 100
    mock_response.usage.output_tokens = 50
    mock_client.messages.create = AsyncMock(return_value=mock_response)
    return mock_client


@pytest.fixture
def test_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def client(analysis_store: InMemoryReportStore, teaching_store: InMemoryReportStore,
           model_client: Mock, pipeline: PodcastPipeline) -> Generator[TestClient, None, None]:
    """Create test client with store, model and pipeline dependency overrides."""
    app.dependency_overrides[dependencies.get_analysis_store] = lambda: analysis_store
    app.dependency_overrides[dependencies.get_teaching_store] = lambda: teaching_store
    app.dependency_overrides[dependencies.get_model_client] = lambda: model_client
    app.dependency_overrides[dependencies.get_podcast_pipeline] = lambda: pipeline
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_completed_teaching(teaching_store: InMemoryReportStore, sample_teaching_result: Dict[str, Any]):
    """Factory storing a completed teaching report directly in the store."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> TeachingAnalysisReport:
        counter["n"] += 1
        now = datetime.utcnow()
        fields = {
            "id": f"teach-test-{counter['n']}",
            "title": "Unconditional election",
            "teaching": "God chose some for salvation before the foundation of the world.",
            "recipient_name_title": "Pastor John",
            "tone_preference": "gentle",
            "output_formats": ["TXT"],
            "status": "completed",
            "analysis_result": sample_teaching_result,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        return teaching_store.create(TeachingAnalysisReport.model_validate(fields))

    return _make
