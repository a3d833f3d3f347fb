"""Shared fixtures for the Quatt tests."""

from __future__ import annotations

from typing import Any

import pytest

from .common import make_payload


@pytest.fixture
def payload() -> dict[str, Any]:
    return make_payload()
