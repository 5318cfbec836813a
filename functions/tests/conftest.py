"""Pytest configuration and shared fixtures for DesignFlow tests."""

import base64
import io
import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from typing import Dict, Any


# ============================================================================
# Ensure local imports work (config/, models/, engine/, services/, pipeline/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from engine...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Mock collection and document methods
    collection_mock = MagicMock()
    document_mock = MagicMock()

    # Set up chain: client.collection().document()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    # Mock async methods
    document_mock.get = AsyncMock(return_value=MagicMock(
        exists=True,
        id="sess-test-12345",
        to_dict=lambda: {"status": "running"}
    ))
    document_mock.set = AsyncMock()

    # Mock subcollection
    subcollection_mock = MagicMock()
    document_mock.collection.return_value = subcollection_mock
    subcollection_mock.document.return_value = document_mock

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """Mock FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    service = FirestoreService(db=mock_firestore_client)
    return service


@pytest.fixture
def mock_session_store():
    """Fully mocked session store for orchestrator tests."""
    mock = MagicMock()
    mock.save_design = AsyncMock()
    mock.update_pipeline_status = AsyncMock()
    mock.get_session = AsyncMock(return_value=None)
    mock.get_pipeline_status = AsyncMock(return_value=None)
    return mock


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """Mock LLMService."""
    from services.llm_service import LLMService

    with patch('services.llm_service.ChatOpenAI', return_value=mock_chat_openai):
        service = LLMService(api_key="test-api-key")
        service._client = mock_chat_openai
        return service


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_session_id():
    """Sample design session ID."""
    return "sess-test-12345"


@pytest.fixture
def sample_photo_base64():
    """Small real JPEG, base64 encoded."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color=(200, 190, 170)).save(buffer, format="JPEG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def sample_analysis_data() -> Dict[str, Any]:
    """Scene analysis JSON as returned by the vision model."""
    from tests.fixtures.mock_catalog_data import SAMPLE_ANALYSIS
    return dict(SAMPLE_ANALYSIS)


@pytest.fixture
def sample_analysis(sample_analysis_data):
    """Parsed SpaceAnalysis."""
    from models.space_analysis import SpaceAnalysis
    return SpaceAnalysis.model_validate(sample_analysis_data)


@pytest.fixture
def sample_catalog():
    """Catalog snapshot with every module code and the preset finishes."""
    from tests.fixtures.mock_catalog_data import build_catalog
    return build_catalog()


@pytest.fixture
def sample_finishes():
    """Finish selection that resolves in the sample catalog."""
    from models.layout import FinishSelection
    return FinishSelection(material="POL-NOWM", hardware="HW-TEST-1200", door_profile="DP-SHAKER")


@pytest.fixture
def sample_user_context(sample_session_id):
    """UserContext for a single-wall kitchen."""
    from models.pipeline import UserContext
    return UserContext(
        session_id=sample_session_id,
        user_id="user-1",
        purpose="kitchen",
        style_summary="light, warm, coastal",
        priorities=["storage"],
        specific_requests=[],
        walls=[{"label": "Long wall", "lengthMm": 3000}],
        budget_tier="mid",
    )


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings(monkeypatch):
    """Pin settings for all tests."""
    from config.settings import settings

    monkeypatch.setattr(settings, "_openai_api_key", "test-api-key")
    monkeypatch.setattr(settings, "_image_api_key", "test-api-key")
    monkeypatch.setattr(settings, "use_firebase_emulators", True)
    monkeypatch.setattr(settings, "vision_model", "gpt-4o")
    monkeypatch.setattr(settings, "vision_temperature", 0.1)
    monkeypatch.setattr(settings, "image_api_base_url", "https://images.test/v1")
    monkeypatch.setattr(settings, "max_image_dimension", 1568)
    monkeypatch.setattr(settings, "nominal_module_width_mm", 600)
    monkeypatch.setattr(settings, "min_module_width_mm", 300)
    monkeypatch.setattr(settings, "capture_confidence_tier", "basic")
    monkeypatch.setattr(settings, "log_level", "INFO")
    yield settings
