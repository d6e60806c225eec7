"""Pytest configuration for test isolation.

The CLI configures the package logger once per process and reads
``SPEND_ANALYTICS_LOG_LEVEL`` from the environment (or a ``.env`` in the
working directory). Both would leak between tests, so every test starts from
an unconfigured logger, a clean environment variable and its own working
directory.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from spend_analytics.logging_setup import reset_logging
from tests.helpers.factories import HEADER


@pytest.fixture(autouse=True)
def _isolate_logging_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Reset package logging and keep ``.env`` lookups inside ``tmp_path``."""

    monkeypatch.delenv("SPEND_ANALYTICS_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    reset_logging()
    yield
    reset_logging()
    # load_dotenv writes straight into os.environ.
    os.environ.pop("SPEND_ANALYTICS_LOG_LEVEL", None)


@pytest.fixture
def scenario_a_csv() -> str:
    return (
        HEADER
        + "\n2024-01-15,purchase,Coffee Shop,completed,-4.50,1234,Jane Doe,,,0.05,Dining"
        + "\n2024-02-01,purchase,Grocery,completed,150.00,1234,Jane Doe,,,1.50,Groceries"
    )
