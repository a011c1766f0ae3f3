"""
Configuration for the workspace HTTP API.

Uses pydantic-settings for environment variable loading. Engine and
workspace settings live in objectstore.config.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HTTP API configuration loaded from environment."""

    host: str = Field(default="127.0.0.1", description="API bind host")
    port: int = Field(default=3100, description="API bind port")

    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    api_prefix: str = Field(default="/api/workspace", description="Route prefix")

    model_config = {"env_prefix": "WORKSPACE_API_"}
