"""Client configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API
    api_url: str = "http://localhost:5000"
    api_token: str | None = None
    request_timeout: float = 30.0

    # Persisted client state (last selected organization)
    state_path: Path = Path.home() / ".mailroom" / "state.json"

    # Background refetch of the organization list, seconds
    refetch_interval: float = 10.0

    # Logging
    log_level: str = "info"
    log_json: bool = False

    # Photo optimization defaults
    photo_max_width: int = 800
    photo_max_height: int = 600
    photo_quality: float = 0.8
    photo_format: str = "jpeg"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "MAILROOM_",
    }


settings = Settings()
