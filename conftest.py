"""
Root conftest.py — registers custom markers.

Markers:
  @pytest.mark.slow   — exhaustive property sweeps; skipped unless --slow or SLOW_TESTS=1
"""
from __future__ import annotations

import os

import pytest


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: mark test as an exhaustive sweep (run with SLOW_TESTS=1 or --slow flag)",
    )


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.slow",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip @pytest.mark.slow tests unless --slow flag or SLOW_TESTS=1 is set."""
    run_slow = config.getoption("--slow") or os.environ.get("SLOW_TESTS", "").lower() in ("1", "true", "yes")
    skip_slow = pytest.mark.skip(reason="Slow sweep — run with --slow or SLOW_TESTS=1")
    for item in items:
        if "slow" in item.keywords and not run_slow:
            item.add_marker(skip_slow)
