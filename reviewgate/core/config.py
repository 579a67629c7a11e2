from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Review Gate"
    debug: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Logging
    log_level: str = "INFO"
    log_dir: str = "/var/log/reviewgate"
    log_to_file: bool = False

    # Gate configuration (YAML, see reviewgate.core.gate_config)
    gate_config_path: Optional[str] = None

    # Source-of-truth provider
    provider_backend: str = "jira"  # jira | memory
    jira_base_url: str = "https://your-domain.atlassian.net"
    jira_email: Optional[str] = None
    jira_api_token: Optional[str] = None
    http_timeout: float = 20.0

    # Item store
    store_backend: str = "memory"  # memory | redis | sql | issue_property
    store_key_prefix: str = "reviewgate"
    redis_url: str = "redis://localhost:6379/0"
    database_url: str = "sqlite:///./reviewgate.db"

    # Client refresh defaults (seconds)
    refresh_min_gap: float = 0.8
    refresh_debounce: float = 0.4
    rate_limit_backoff: float = 5.0
    poll_interval: float = 3.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REVIEWGATE_",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
