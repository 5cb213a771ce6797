from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

import pytest

from airules.content.repository import FileContentRepository
from tests._fixtures.content_builder import ContentBuilder

FIXED_NOW = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)


@pytest.fixture
def content_builder(tmp_path: Path) -> ContentBuilder:
    """Provide a reusable content directory builder rooted at the pytest tmp_path."""
    return ContentBuilder(tmp_path)


@pytest.fixture
def bundled_repository() -> FileContentRepository:
    """Repository over the content shipped with the package."""
    return FileContentRepository()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW
