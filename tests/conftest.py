#!/usr/bin/env python3
"""Shared pytest fixtures for partial-json-lite test suite."""

import pytest
import json
import pathlib
import sys
from typing import Any, Dict, List

# Add parent directory to path for imports
sys.path.insert(0, str(pathlib.Path(__file__).parent.parent))

from tests.fixtures.generate_test_data import (
    generate_flat_json,
    generate_nested_json,
    generate_tool_call_json,
    generate_unicode_json,
)


# ============================================================================
# Document Fixtures
# ============================================================================

SAMPLE_DOCUMENTS: List[Any] = [
    {"name": "Alice", "age": 30},
    [1, "two", None, True, False],
    {"nested": {"deep": {"value": "hello\nworld"}}, "arr": [1, [2, [3]]]},
    {"escapes": 'say "hi"\tand\\or\nnewline', "empty": "", "zero": 0, "neg": -42},
    {"mixed": [None, True, False, 0, -1, 3.14, "", "abc", {"a": 1}, [2]]},
    {"unicode": "café", "path": "C:\\Users\\admin", "slash": "a/b/c"},
    {"flags": {"a": {"b": {"c": {"d": True}}}}, "tags": []},
    {"numbers": [1e10, -2.5e-3, 6.022e23, 0.5, -0.0, 12345678901234567890]},
]


@pytest.fixture(params=SAMPLE_DOCUMENTS, ids=lambda d: json.dumps(d)[:30])
def sample_document(request) -> Any:
    """Parametrized fixture over hand-picked documents."""
    return request.param


@pytest.fixture
def flat_json_text() -> str:
    return generate_flat_json(25)


@pytest.fixture
def nested_json_text() -> str:
    return generate_nested_json(5, 3, seed=7)


@pytest.fixture
def unicode_json_text() -> str:
    return generate_unicode_json(10)


@pytest.fixture
def tool_call_json_text() -> str:
    return generate_tool_call_json()


@pytest.fixture
def complex_json_structure() -> Dict[str, Any]:
    """Generate a complex JSON structure for testing."""
    return {
        "metadata": {
            "version": "1.0",
            "timestamp": "2024-01-01T00:00:00Z"
        },
        "data": {
            "users": [
                {
                    "id": i,
                    "profile": {
                        "name": f"User {i}",
                        "settings": {
                            "notifications": True,
                            "theme": "dark"
                        }
                    },
                    "activity": [
                        {"action": f"action_{j}", "timestamp": j}
                        for j in range(3)
                    ]
                }
                for i in range(4)
            ]
        }
    }


# ============================================================================
# Parser Fixtures
# ============================================================================

@pytest.fixture
def partial_parser():
    """Create a PartialJSONParser instance."""
    from partial_json.streaming_parser import PartialJSONParser
    return PartialJSONParser()


# ============================================================================
# FastAPI Test Client
# ============================================================================

@pytest.fixture
def fastapi_client():
    """Create a FastAPI test client for the snapshot service."""
    from fastapi.testclient import TestClient
    from lite_service.app import app

    return TestClient(app)


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture
def clean_environment(monkeypatch):
    """Ensure a clean environment for tests."""
    env_vars_to_remove = [
        'HOST', 'PORT', 'LOG_LEVEL', 'PARTIAL_JSON_MAX_BYTES', 'PARTIAL_JSON_MAX_DEPTH'
    ]
    for var in env_vars_to_remove:
        monkeypatch.delenv(var, raising=False)

    yield


# ============================================================================
# Async Fixtures
# ============================================================================

@pytest.fixture
def async_chunks():
    """Build an async generator over the given chunks."""
    async def _source(chunks):
        for chunk in chunks:
            yield chunk
    return _source


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
    config.addinivalue_line("markers", "benchmark: marks benchmark tests")
