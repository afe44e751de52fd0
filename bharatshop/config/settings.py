from typing import Any, Optional

from pydantic import AliasChoices, Field, PositiveFloat, PositiveInt, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bharatshop.utils.logger import get_logger

# bharatshop/config/settings.py

logger = get_logger("config")

DEFAULT_GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

class Settings(BaseSettings):
    """Runtime configuration read from GEMINI_* and BHARATSHOP_* environment variables."""

    model_config = SettingsConfigDict(env_file=None, case_sensitive=False, extra="ignore")

    # Gemini
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_api_url: str = DEFAULT_GEMINI_API_URL
    gemini_timeout_seconds: PositiveFloat = 15.0

    # Recommendation engine; ai_enabled left unset means "on when a key is present"
    ai_enabled: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("ai_enabled", "BHARATSHOP_AI_ENABLED")
    )
    local_top_k: PositiveInt = Field(
        default=4, validation_alias=AliasChoices("local_top_k", "BHARATSHOP_LOCAL_TOP_K")
    )
    service_top_k: PositiveInt = Field(
        default=6, validation_alias=AliasChoices("service_top_k", "BHARATSHOP_SERVICE_TOP_K")
    )

    @field_validator("gemini_api_key", "ai_enabled", mode="before")
    @classmethod
    def _blank_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("gemini_timeout_seconds", "ai_enabled", "local_top_k", "service_top_k", mode="wrap")
    @classmethod
    def _default_on_invalid(cls, v: Any, handler, info) -> Any:
        try:
            return handler(v)
        except ValidationError:
            default = cls.model_fields[info.field_name].default
            logger.warning(f"Invalid value {v!r} for {info.field_name}, using {default!r}")
            return default

    @model_validator(mode="after")
    def _ai_follows_key(self) -> "Settings":
        if self.ai_enabled is None:
            self.ai_enabled = self.gemini_api_key is not None
        return self

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()
