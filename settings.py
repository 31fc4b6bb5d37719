from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    project_dir: Path = Path("./data")
    target_tolerance: float = 0.10
    min_dimension: int = 48
    max_probe_iterations: int = 20
    default_quality: int = 85
    detail_panel_width: int = 400
    detail_panel_height: int = 300
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REFORMAT_",
        env_file_encoding="utf-8",
    )

    @field_validator("target_tolerance")
    @classmethod
    def tolerance_must_be_fraction(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("target_tolerance must be between 0.0 and 1.0 (exclusive)")
        return v

    @field_validator("min_dimension")
    @classmethod
    def min_dimension_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_dimension must be at least 1")
        return v

    @field_validator("max_probe_iterations")
    @classmethod
    def iterations_must_allow_a_search(cls, v: int) -> int:
        if v < 2:
            raise ValueError("max_probe_iterations must be at least 2")
        return v

    @field_validator("default_quality")
    @classmethod
    def quality_in_encoder_range(cls, v: int) -> int:
        if not 40 <= v <= 100:
            raise ValueError("default_quality must be between 40 and 100")
        return v

    @field_validator("detail_panel_width", "detail_panel_height")
    @classmethod
    def panel_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("detail panel dimensions must be at least 1")
        return v

    @property
    def jobs_dir(self) -> Path:
        return self.project_dir / "jobs"

    @property
    def cache_dir(self) -> Path:
        return self.project_dir / ".cache"

    @property
    def plans_dir(self) -> Path:
        return self.cache_dir / "plans"

    @property
    def job_yaml_path(self) -> Path:
        return self.jobs_dir / "job.yaml"
