"""
Pytest configuration and fixtures for murxla-be-z3solver tests.
"""
import sys
from pathlib import Path

import pytest
import z3

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from murxla.be.z3solver import Z3Solver  # noqa: E402
from murxla.be.z3solver.config import ENV_OPTIONS  # noqa: E402


@pytest.fixture(autouse=True)
def _no_env_options(monkeypatch):
    """Keep a user's $MURXLA_Z3_OPTIONS out of the tests."""
    monkeypatch.delenv(ENV_OPTIONS, raising=False)


@pytest.fixture(scope="session")
def ctx():
    """Z3 context for translator tests, shared so it outlives every term built in it."""
    return z3.Context()


@pytest.fixture
def solver():
    """Initialized Z3Solver, deleted after the test."""
    s = Z3Solver()
    s.new_solver()
    yield s
    if s.is_initialized():
        s.delete_solver()
