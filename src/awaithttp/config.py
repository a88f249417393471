"""Configuration management for awaithttp."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from awaithttp.exceptions import ConfigurationError


@dataclass
class Config:
    """Configuration for an awaithttp client context.

    This class manages the options used to build the HTTP engine, the
    cookie store and the transfer helpers.
    """

    # Persistence
    cookie_file: Optional[str] = None  # None disables cookie persistence
    header_file: Optional[str] = None

    # HTTP settings
    timeout: float = 30.0  # seconds
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/80.0.3987.149 Safari/537.36"
    )
    proxy: Optional[str] = None
    verify_ssl: bool = True
    follow_redirects: bool = True
    http2: bool = False

    # Engine settings
    max_workers: int = 8  # I/O threads that run engine calls

    # Transfer settings
    chunk_size: int = 8192  # bytes per streamed chunk

    # Diagnostics: None means "read the process-wide switch"
    record_stack: Optional[bool] = None

    def __post_init__(self):
        """Initialize and validate configuration."""
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive: {self.chunk_size}")
        if self.max_workers <= 0:
            raise ConfigurationError(f"max_workers must be positive: {self.max_workers}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive: {self.timeout}")

        # Setup proxy from environment if not specified
        if not self.proxy:
            self.proxy = os.environ.get('HTTPS_PROXY') or os.environ.get('HTTP_PROXY')

        # Resolve the stack recorder switch now so a bad value fails at startup
        if self.record_stack is None:
            from awaithttp.http.bridge import is_record_stack
            self.record_stack = is_record_stack()

    @classmethod
    def get_home_dir(cls) -> Path:
        """Get the awaithttp home directory (~/.awaithttp)."""
        home = Path.home() / ".awaithttp"
        home.mkdir(parents=True, exist_ok=True)
        return home

    @classmethod
    def default_cookie_file(cls) -> Path:
        """Get the default cookie document path (~/.awaithttp/cookies.json)."""
        return cls.get_home_dir() / "cookies.json"
