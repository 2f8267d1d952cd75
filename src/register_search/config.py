"""Centralized configuration for register-search using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from register_search.acquisition.loader import DataSource


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``REGISTER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REGISTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Dataset
    data_url: str = Field(default="", description="URL or local path of the JSON / JSON Lines dataset")
    data_gzipped: bool = Field(default=False, description="Dataset is gzip-compressed")
    data_jsonl: bool = Field(default=False, description="Dataset is JSON Lines (one object per line)")

    # HTTP
    http_timeout: int = Field(default=30, ge=1, description="HTTP request timeout in seconds")
    user_agent: str = Field(default="register-search/0.1", description="User-Agent sent when fetching datasets")

    # Search
    max_results: int = Field(default=1000, ge=1, description="Maximum records returned for a non-empty query")
    indexed_fields: str = Field(default="name,city,type", description="Comma-separated record fields to index")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("indexed_fields")
    @classmethod
    def _check_indexed_fields(cls, value: str) -> str:
        if not [name for name in value.split(",") if name.strip()]:
            raise ValueError("REGISTER_INDEXED_FIELDS must name at least one field")
        return value

    def get_indexed_fields(self) -> tuple[str, ...]:
        """Get the indexed field names, in order, without duplicates."""
        names = [name.strip() for name in self.indexed_fields.split(",") if name.strip()]
        return tuple(dict.fromkeys(names))

    def data_source(self) -> DataSource:
        """Build the configured dataset source.

        Raises:
            ValueError: If no dataset URL is configured
        """
        if not self.data_url:
            raise ValueError("REGISTER_DATA_URL is not set")
        return DataSource(url=self.data_url, gzipped=self.data_gzipped, jsonl=self.data_jsonl)
