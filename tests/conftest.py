"""
Pytest configuration and fixtures.
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import Config, new_default_config  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep APERTURE_* variables of the host out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("APERTURE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Application data directory substituted for the process-wide one."""
    return tmp_path / "aperture-data"


@pytest.fixture
def default_config(data_dir) -> Config:
    return new_default_config(data_dir)
