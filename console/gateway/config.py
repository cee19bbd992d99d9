"""
Configuration for the KV Explorer console.

Uses pydantic-settings for environment variable loading. Store settings
live in kvexplorer_core.config and are read from KVX_* variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Console configuration loaded from environment."""

    # Console settings
    host: str = Field(default="0.0.0.0", description="Console bind host")
    port: int = Field(default=8080, description="Console bind port")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    model_config = {"env_prefix": "CONSOLE_"}
