from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog.cache import DEFAULT_MAX_BYTES, DEFAULT_MAX_ENTRIES
from .catalog.giphy_service import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .catalog.pipeline import DEFAULT_DEBOUNCE_SECONDS
from .catalog.repository import DEFAULT_PAGE_SIZE


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, case_sensitive=False)

    giphy_api_key: str | None = Field(default=None, validation_alias="GIPHY_API_KEY")
    giphy_base_url: str = Field(default=DEFAULT_BASE_URL, validation_alias="GIPHY_BASE_URL")
    http_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, validation_alias="HTTP_TIMEOUT_SECONDS")
    content_rating: str = Field(default="g", validation_alias="CONTENT_RATING")
    search_lang: str = Field(default="en", validation_alias="SEARCH_LANG")

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, le=50, validation_alias="PAGE_SIZE")
    cache_max_entries: int = Field(default=DEFAULT_MAX_ENTRIES, gt=0, validation_alias="CACHE_MAX_ENTRIES")
    cache_max_bytes: int = Field(default=DEFAULT_MAX_BYTES, gt=0, validation_alias="CACHE_MAX_BYTES")
    search_debounce_seconds: float = Field(
        default=DEFAULT_DEBOUNCE_SECONDS, ge=0, validation_alias="SEARCH_DEBOUNCE_SECONDS"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("giphy_api_key", mode="before")
    @classmethod
    def _empty_str_to_none(cls, v):
        if v is None:
            return None
        if isinstance(v, str) and not v.strip():
            return None
        return v


settings = Settings()
