"""Application configuration loaded from config.yaml and environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from publisher.errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_YAML_PATH = PROJECT_ROOT / "config.yaml"

REQUIRED_PUBLISH_KEYS = ("gh_token", "repo_owner", "repo_name")


# --- YAML sub-models ---


class FetchConfig(BaseModel):
    """Upstream digest API settings."""

    api_url: str = "https://60s.viki.moe/v2/60s"
    timeout_seconds: float = 15.0
    max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    referer: str = "https://60s.viki.moe/"


class StorageConfig(BaseModel):
    """Remote and local artifact locations."""

    json_dir: str = "static/60s"
    image_dir: str = "static/images"
    local_data_dir: str = "data"


class RenderConfig(BaseModel):
    """Headless browser rendering parameters."""

    timeout_seconds: float = 30.0
    viewport_width: int = 1080
    viewport_height: int = 1920


class PublishConfig(BaseModel):
    """Publish policy knobs."""

    validation_policy: Literal["strict", "lenient"] = "lenient"
    require_today: bool = True
    max_conflict_retries: int = 0
    image_base_url: str = ""
    source_url: str = ""


class ScheduleConfig(BaseModel):
    """Scheduler timing settings."""

    daily_pipeline_hour: int = 8
    daily_pipeline_minute: int = 30


# --- Main settings ---


class Settings(BaseSettings):
    """Application settings combining .env secrets and config.yaml values."""

    # App config
    env: str = Field(default="dev")
    log_format: str = Field(default="text")
    timezone: str = Field(default="Asia/Shanghai")
    enable_internal_scheduler: bool = Field(default=False)
    pipeline_trigger_token: str = Field(default="")

    # Secrets and repository coordinates from .env
    gh_token: str = Field(default="")
    repo_owner: str = Field(default="")
    repo_name: str = Field(default="")
    branch: str = Field(default="main")

    # YAML-sourced config
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def __init__(self, **kwargs: Any) -> None:
        yaml_data = _load_yaml_config()
        merged = {**yaml_data, **kwargs}
        super().__init__(**merged)

    @property
    def effective_image_base_url(self) -> str:
        """Return the public base URL under which rendered images are served.

        Defaults to the jsDelivr mirror of the target repository's image
        directory when no explicit base URL is configured.
        """
        if self.publish.image_base_url:
            return self.publish.image_base_url.rstrip("/")
        return self._cdn_url(self.storage.image_dir)

    @property
    def effective_source_url(self) -> str:
        """Return the canonical read endpoint advertised in published records."""
        if self.publish.source_url:
            return self.publish.source_url
        return self._cdn_url(self.storage.json_dir)

    def missing_publish_keys(self) -> list[str]:
        """List the required publish settings that are empty."""
        return [key for key in REQUIRED_PUBLISH_KEYS if not getattr(self, key)]

    def _cdn_url(self, directory: str) -> str:
        return (
            f"https://cdn.jsdmirror.com/gh/{self.repo_owner}/{self.repo_name}"
            f"@{self.branch}/{directory.strip('/')}"
        )


def require_publish_settings(settings: Settings) -> Settings:
    """Fail fast when credentials or repository coordinates are missing.

    Raises:
        ConfigError: If any key in REQUIRED_PUBLISH_KEYS is empty.
    """
    missing = settings.missing_publish_keys()
    if missing:
        names = ", ".join(key.upper() for key in missing)
        raise ConfigError(f"Missing required configuration: {names}")
    return settings


def _load_yaml_config() -> dict[str, Any]:
    """Read and parse config.yaml, returning an empty dict on failure."""
    if not CONFIG_YAML_PATH.exists():
        return {}
    with CONFIG_YAML_PATH.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
