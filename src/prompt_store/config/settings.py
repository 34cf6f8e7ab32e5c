"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    database_echo: bool = Field(default=False, validation_alias="DATABASE_ECHO")
    redis_url: NonEmptyStr | None = Field(default=None, validation_alias="REDIS_URL")
    prompt_management_enabled: bool = Field(
        default=True,
        validation_alias="PROMPT_MANAGEMENT_ENABLED",
    )
    prompt_cache_ttl_seconds: NonNegativeFloat = Field(
        default=300,
        validation_alias="PROMPT_CACHE_TTL_SECONDS",
    )
    prompt_cache_namespace: NonEmptyStr = Field(
        default="prompt_store:prompt",
        validation_alias="PROMPT_CACHE_NAMESPACE",
    )
    prompt_cache_monitoring_enabled: bool = Field(
        default=True,
        validation_alias="PROMPT_CACHE_MONITORING_ENABLED",
    )
    prompt_cache_warming_enabled: bool = Field(
        default=True,
        validation_alias="PROMPT_CACHE_WARMING_ENABLED",
    )
    prompt_cache_warmup_delay_seconds: NonNegativeFloat = Field(
        default=2.0,
        validation_alias="PROMPT_CACHE_WARMUP_DELAY_SECONDS",
    )
    prompt_cache_critical_prompts: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias="PROMPT_CACHE_CRITICAL_PROMPTS",
    )
    prompt_stats_ttl_seconds: PositiveInt = Field(
        default=86_400,
        validation_alias="PROMPT_STATS_TTL_SECONDS",
    )
    prompt_config_schema_strict: bool = Field(
        default=False,
        validation_alias="PROMPT_CONFIG_SCHEMA_STRICT",
    )
    prompt_allow_production_deletion: bool = Field(
        default=False,
        validation_alias="PROMPT_ALLOW_PRODUCTION_DELETION",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("prompt_cache_critical_prompts", mode="before")
    @classmethod
    def _split_prompt_names(cls, value: object) -> object:
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
