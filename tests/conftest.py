"""
Shared test configuration.

Clears MERCATOR_* environment overrides (which a developer's .env may
set) so every test sees the default configuration.
"""

import os

import pytest


@pytest.fixture(autouse=True, scope="session")
def _isolate_env():
    """Drop .env overrides for the whole test session."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("MERCATOR_")}
    for key in saved:
        os.environ.pop(key)
    yield
    os.environ.update(saved)
