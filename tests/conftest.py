from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SRC = BASE_DIR / "src"

for path in (SRC, BASE_DIR):
    sys.path.insert(0, str(path))

from tests.pos_helpers import FixedClock  # noqa: E402


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc))
