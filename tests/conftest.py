from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

FIXED_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock that always reports FIXED_TIME, for reproducible timestamps."""
    return lambda: FIXED_TIME
