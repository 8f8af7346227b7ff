"""
Shared test fixtures — test client, no Gemini key.
"""

import os
import pytest
from fastapi.testclient import TestClient

# Extraction must never reach the network in tests
os.environ.pop("GEMINI_API_KEY", None)

from framecost.config import settings
from framecost.main import app


@pytest.fixture(autouse=True)
def no_gemini_key(monkeypatch):
    """Tests that need the AI path stub _call_gemini and set a key themselves."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)
