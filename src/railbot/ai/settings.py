"""Runtime settings for the strategy engine, read from RAILBOT_* environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RAILBOT_", env_file=".env", extra="ignore")

    max_retries: int = Field(default=3, ge=1, description="Candidates tried before falling back to a pass")
    victory_cash: int = Field(default=250, gt=0, description="Cash needed to win")
    victory_cities: int = Field(default=7, gt=0, description="Major cities connected needed to win")
    log_level: str = "INFO"
    host: str = Field(default="127.0.0.1", description="Strategy inspector bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Strategy inspector port")
