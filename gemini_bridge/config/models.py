"""Configuration models for gemini-bridge."""

from pydantic import BaseModel, Field, field_validator

from gemini_bridge.mapper.constants import (
    DEFAULT_PROJECT_ID,
    SIGNATURE_CACHE_MAX_ENTRIES,
    SIGNATURE_CACHE_TTL_SECONDS,
    USER_AGENT,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class MapperConfig(BaseModel):
    project_id: str = DEFAULT_PROJECT_ID
    user_agent: str = USER_AGENT
    signature_ttl_seconds: float = Field(default=SIGNATURE_CACHE_TTL_SECONDS, gt=0)
    max_signature_entries: int = Field(default=SIGNATURE_CACHE_MAX_ENTRIES, ge=1)


class LoggingConfig(BaseModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level


class BridgeConfig(BaseModel):
    mapper: MapperConfig = Field(default_factory=MapperConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
