"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest


@pytest.fixture
def payload_dir(tmp_path: Path) -> Path:
    """Temporary directory for JSON/YAML payload files."""
    return tmp_path
