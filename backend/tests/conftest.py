import os
import sys
from pathlib import Path

# Add the backend root directory to Python path first
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

"""
Pytest configuration and fixtures for the layer registry tests.
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

# Integration tests run against a real PostgreSQL/PostGIS when this is set
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
def layer_id():
    return uuid.uuid4()


@pytest.fixture
def stored_layer(layer_id):
    """A row as the ORM would return it."""
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    return SimpleNamespace(
        id=layer_id,
        status="uploading",
        name="Rivers of Africa",
        upload_type="geojson",
        total_size=2048,
        current_offset=512,
        created_at=now,
        updated_at=now,
    )
