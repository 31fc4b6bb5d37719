from pathlib import Path

import pytest

from engine.edit_store import ItemEditStore
from models.items import ImageItem
from settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with defaults, pointing at an empty temp project."""
    return Settings(project_dir=tmp_path)


@pytest.fixture
def tmp_settings(tmp_path: Path) -> Settings:
    """Settings instance pointing at a fresh temp directory for tests that write output.

    Directory layout mirrors the real project:
        data/jobs/      job.yaml files
        data/photos/    source images referenced by jobs
    """
    for subdir in ("jobs", "photos"):
        (tmp_path / subdir).mkdir()
    return Settings(project_dir=tmp_path)


@pytest.fixture
def memory_store() -> ItemEditStore:
    """Empty per-session edit store."""
    return ItemEditStore()


@pytest.fixture
def items() -> list[ImageItem]:
    """Three 800×600 items A, B, C in selection order."""
    return [
        ImageItem(id=item_id, original_name=f"{item_id}.jpg", bytes=100_000,
                  width=800, height=600, format="jpeg")
        for item_id in ("A", "B", "C")
    ]
