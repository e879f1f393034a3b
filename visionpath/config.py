"""Process configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    visionpath_env: str = "development"
    visionpath_log_level: str = "info"

    # Frame size used when a driver does not give one
    frame_width: int = 64
    frame_height: int = 64

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
