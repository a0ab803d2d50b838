"""Shared pytest fixtures for mcp-timelog tests."""

import tempfile
from pathlib import Path

import pytest
from loguru import logger

from mcp_timelog.config import TimelogConfig
from mcp_timelog.engine import TimelogEngine


@pytest.fixture
def temp_project():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_project):
    """Create a test configuration."""
    return TimelogConfig(
        project_name="test-project",
        project_root=temp_project,
        host="testhost",
    )


@pytest.fixture
def engine(config):
    """Create a test engine."""
    return TimelogEngine(config)


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages = []
    sink_id = logger.add(lambda msg: messages.append(msg.record), level="DEBUG")
    yield messages
    logger.remove(sink_id)
