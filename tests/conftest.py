"""Shared pytest fixtures and configuration for the x-dl test suite.

Guidelines
----------
* No internet access in any test.
* No real browser and no real ffmpeg: capabilities are replaced by the
  in-memory fakes in ``tests/fakes.py``.
* Core tests must be pure — no side effects outside ``tmp_path``.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import pytest

from fakes import FakeClock, FakeProbe


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()
