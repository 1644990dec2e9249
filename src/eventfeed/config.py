from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import TierLookup


class Settings(BaseModel):
    state_dir: str = ".eventfeed_state"
    similarity_threshold: float = 0.5
    default_tier: int = 4

    @field_validator("similarity_threshold")
    @classmethod
    def _threshold_in_range(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        return value

    def state_path(self, base_path: Path | None = None) -> Path:
        root = Path(base_path or ".")
        state = root / self.state_dir
        state.mkdir(parents=True, exist_ok=True)
        return state


class SourceConfig(BaseModel):
    name: str
    tier: int = Field(ge=1)


class AppConfig(BaseModel):
    settings: Settings = Field(default_factory=Settings)
    sources: list[SourceConfig] = Field(default_factory=list)

    def ensure_state_dir(self, base_path: Path | None = None) -> Path:
        return self.settings.state_path(base_path)

    def tier_lookup(self) -> TierLookup:
        tiers = {source.name.lower(): source.tier for source in self.sources}
        default = self.settings.default_tier

        def lookup(source: str) -> int:
            return tiers.get(source.lower(), default)

        return lookup


@dataclass(slots=True)
class ConfigLoadResult:
    config: AppConfig
    path: Path


def load_config(path: str | Path = "eventfeed.yaml") -> ConfigLoadResult:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    data = yaml.safe_load(cfg_path.read_text()) or {}
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid config file {cfg_path}: {exc}") from exc
    return ConfigLoadResult(config=config, path=cfg_path)
