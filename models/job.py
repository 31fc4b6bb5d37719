"""Reformat job: typed representation of job.yaml.

A job names the source images, their per-item edits, and the run-wide
resize/quality/format choices. Paths are relative to `settings.project_dir`.
"""
from pathlib import Path

from pydantic import BaseModel, Field

from models.crop import Crop
from models.items import ItemRunConfig
from models.lens import PixelRegion
from models.resize import OutputFormat, PercentResize, QualitySettings, ResizeSettings
from models.transform import Transform


class JobEntry(BaseModel):
    path: Path  # relative to project_dir, e.g. photos/IMG_001.jpg
    transform: Transform = Field(default_factory=Transform)
    crop: Crop = Field(default_factory=Crop)


class ReformatJob(BaseModel):
    output_format: OutputFormat = "same"
    resize: ResizeSettings = Field(default_factory=PercentResize)
    quality: QualitySettings = Field(default_factory=QualitySettings)
    items: list[JobEntry] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "ReformatJob":
        """Load from a YAML file. Missing fields use Pydantic defaults.

        Raises FileNotFoundError if path does not exist.
        """
        import yaml  # lazy, only needed at load time
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(data)

    @classmethod
    def load_or_default(cls, path: Path) -> "ReformatJob":
        if path.exists():
            return cls.load(path)
        return cls()


class JobPlan(BaseModel):
    configs: list[ItemRunConfig] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # job paths that could not be planned
    # item_id → region of the oriented image shown 1:1 in the detail panel;
    # absent when the whole image fits the panel
    details: dict[str, PixelRegion] = Field(default_factory=dict)

    def by_item_id(self, item_id: str) -> ItemRunConfig | None:
        return next((c for c in self.configs if c.item_id == item_id), None)
