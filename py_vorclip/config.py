"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_VORCLIP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Diagram construction
    far_field_scale: float = Field(
        default=10.0, gt=2.0,
        description="Distance of the far-field points, in multiples of the sites' extent",
    )
    lloyd_iterations: int = Field(default=3, ge=0, description="Default Lloyd relaxation iterations")


settings = Settings()
