"""
Configuration module for the Starling editor client.

Uses pydantic-settings for configuration management with environment variable support.
Environment variables use STARLING_ prefix (e.g., STARLING_PORT).
"""

from fnmatch import fnmatch
from pathlib import PurePath

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Environment variables:
    - STARLING_HOST: Host the Starling server listens on
    - STARLING_PORT: Port the Starling server listens on
    - STARLING_CONNECT_TIMEOUT: Seconds to wait for a connection
    - STARLING_REQUEST_TIMEOUT: Seconds allowed for a whole request
    - STARLING_REFRESH_DEBOUNCE: Minimum seconds between node cache refreshes
    - STARLING_RELOAD_INTERVAL: Seconds between autoreload rechecks
    - STARLING_WRITE_RECHECK_DELAY: Seconds to wait after a write before rechecking
    - STARLING_LOG_LEVEL: structlog filtering level
    """

    host: str = "localhost"
    port: int = 3000
    # The server is local, we should connect instantly or it isn't running
    connect_timeout: float = 1.0
    request_timeout: float = 10.0
    refresh_debounce: float = 5.0
    reload_interval: float = 1.0
    # Must be longer than the server's own write debounce
    write_recheck_delay: float = 0.5
    conn_format: str = "markdown"
    source_name: str = "starling"
    note_patterns: list[str] = Field(default_factory=lambda: ["*.md", "*.markdown"])
    autoreload_patterns: list[str] = Field(default_factory=lambda: ["*.md"])
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="STARLING_")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def is_note_file(self, name: str) -> bool:
        """Check whether a buffer name matches one of the note patterns."""
        return _matches(name, self.note_patterns)

    def is_autoreload_file(self, name: str) -> bool:
        """Check whether a buffer name should be rechecked on a timer."""
        return _matches(name, self.autoreload_patterns)


def _matches(name: str, patterns: list[str]) -> bool:
    if not name:
        return False
    basename = PurePath(name).name
    return any(fnmatch(basename, pattern) for pattern in patterns)


# Global settings instance
settings = Settings()
