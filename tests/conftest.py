"""Root test configuration: logging capture and session-level cleanup of runtime artifacts"""

import logging
import shutil
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = [".mdplay", "dist"]


@pytest.fixture(autouse=True)
def propagate_mdplay_logs(monkeypatch):
    """Let caplog see mdplay records and drop handlers a CLI run bound to its captured streams."""
    logger = logging.getLogger("mdplay")
    monkeypatch.setattr(logger, "propagate", True)
    monkeypatch.setattr(logger, "handlers", [])


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove staging and output directories created during the test session."""
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)
