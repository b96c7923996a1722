"""Pytest configuration and fixtures for the AI Edit Service."""

import os
import sys
from pathlib import Path
from typing import Generator, List
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Add the api directory to Python path
api_dir = Path(__file__).parent
sys.path.insert(0, str(api_dir))

from app.core.config import settings
from app.main import create_app
from app.services.audit_log import AuditLog


@pytest.fixture
def audit_log() -> AuditLog:
    """A fresh audit log per test."""
    return AuditLog(capacity=50)


@pytest.fixture
def mock_model() -> AsyncMock:
    """Model stub; set ``return_value`` or ``side_effect`` per test."""
    return AsyncMock(return_value="[]")


@pytest.fixture
def client(audit_log, mock_model) -> Generator[TestClient, None, None]:
    """Test client wired to the isolated audit log and model stub."""
    app = create_app(audit_log=audit_log, invoke_model=mock_model)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def service_secret():
    """Enable shared-secret auth for the duration of a test."""
    previous = settings.service_secret
    settings.service_secret = "test-secret"
    yield "test-secret"
    settings.service_secret = previous


@pytest.fixture(autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    test_env = {
        "TESTING": "true",
        "GOOGLE_API_KEY": "test-key",
        "LOG_LEVEL": "DEBUG",
    }
    previous = {key: os.environ.get(key) for key in test_env}
    os.environ.update(test_env)

    yield

    for key, value in previous.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def sample_dictionary() -> List[dict]:
    """Text/link slots of a small landing page."""
    return [
        {"id": "a", "path": "/a", "widget_type": "heading", "text": "Welcome"},
        {"id": "b", "path": "/b", "widget_type": "text-editor", "text": "<p>About us</p>"},
        {
            "id": "c",
            "path": "/c",
            "widget_type": "button",
            "text": "Contact",
            "link_url": "https://example.com/contact",
        },
    ]


@pytest.fixture
def sample_image_slots() -> List[dict]:
    """Image/background slots of the same page."""
    return [
        {
            "id": "img1",
            "path": "/hero/bg",
            "slot_type": "background",
            "el_type": "section",
            "image_url": "https://example.com/hero.jpg",
            "image_id": 12,
        },
    ]


@pytest.fixture
def sample_kit_settings() -> dict:
    """System colors and typography of a theme kit."""
    return {
        "colors": [
            {"_id": "primary", "title": "Primary", "value": "#1e3a5f"},
            {"_id": "secondary", "title": "Secondary", "value": "#ffffff"},
        ],
        "typography": [
            {
                "_id": "primary",
                "title": "Headings",
                "typography_font_family": "Inter",
                "typography_font_size": {"unit": "px", "size": 32},
            },
        ],
    }
