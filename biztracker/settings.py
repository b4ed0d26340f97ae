# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from platformdirs import PlatformDirs


class Settings(BaseSettings):
    api_url: str = "http://localhost:5000"
    api_token: str | None = None
    timeout_seconds: int = 30
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    poll_timeout_seconds: float = Field(default=600.0, gt=0)
    home: str | None = None

    # Version-agnostic config for pydantic-settings 2.x
    model_config = {
        "env_prefix": "BIZTRACKER_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("api_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

    def dirs(self) -> PlatformDirs:
        return PlatformDirs(appname="biztracker", appauthor=False, ensure_exists=True)

    def resolve_data_dir(self) -> Path:
        base = Path(self.home) if self.home else Path(self.dirs().user_data_path)
        base.mkdir(parents=True, exist_ok=True)
        return base

    def resolve_config_dir(self) -> Path:
        base = Path(self.home) if self.home else Path(self.dirs().user_config_path)
        base.mkdir(parents=True, exist_ok=True)
        return base
