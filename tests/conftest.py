"""Shared test fixtures for quiverlink."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from quiverlink.build.runner import DocumentProcessor
from quiverlink.config import Settings, reset_settings
from quiverlink.core.logging import RunLogger, Verbosity
from tests.helpers.diagrams import FIXED_NOW, FakeRenderer


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Global settings never leak between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Workspace root with an articles/ directory."""
    root = tmp_path / "workspace"
    (root / "articles").mkdir(parents=True)
    return root


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, write_run_log=False)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def quiet_logger(console_output) -> RunLogger:
    return RunLogger(verbosity=Verbosity.DEFAULT, console=Console(file=console_output, width=200))


@pytest.fixture
def processor(renderer, workspace, settings, quiet_logger) -> DocumentProcessor:
    return DocumentProcessor(
        renderer,
        workspace,
        settings=settings,
        run_logger=quiet_logger,
        clock=lambda: FIXED_NOW,
    )
