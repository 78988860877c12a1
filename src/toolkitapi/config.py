"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the local toolkit API.

The API is meant to be reached by other processes on the same machine
(scripts, browser extensions, automation tools), so the defaults bind to
loopback on a fixed, well-known port:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m toolkitapi --port 60000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TOOLKIT_PORT=60000 python -m toolkitapi                   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_PORT = 54321
DEFAULT_LANGUAGE = "zh-Hans"
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the toolkit API server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    LIMITS
    - max_request_size

    API
    - default_language, service_name, service_version, confidence

    LOGGING
    - log_level, log_format, access_log

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    Loopback only: the API is for local processes, not the network.
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on.
    0 asks the OS for a free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses new ones."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = no deadline. A peer that never finishes its request keeps its
    handler thread until it disconnects or the server stops.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """
    Read ceiling per request in bytes.
    Anything past it is never read; a truncated upload usually fails
    decoding further down.
    """

    # ─────────────────────────────────────────────────────────────────────
    # API
    # ─────────────────────────────────────────────────────────────────────

    default_language: str = DEFAULT_LANGUAGE
    """Language reported when an OCR request does not name one."""

    service_name: str = "mac-toolkit-api"
    service_version: str = "1.0.0"

    confidence: float = 0.95
    """Confidence reported with OCR results; the recognizer does not score its output."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    access_log: bool = True
    """Emit one access log line per request."""

    @property
    def server_name(self) -> str:
        """Value for the Server response header."""
        return f"{self.service_name}/{self.service_version}"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TOOLKIT_HOST              Server host (default: 127.0.0.1)
        TOOLKIT_PORT              Server port (default: 54321)
        TOOLKIT_TIMEOUT           Socket timeout in seconds (default: none)
        TOOLKIT_MAX_REQUEST_SIZE  Read ceiling in bytes (default: 10 MB)
        TOOLKIT_LANGUAGE          Default OCR language (default: zh-Hans)
        TOOLKIT_LOG_LEVEL         Logging level (default: INFO)
        TOOLKIT_LOG_FORMAT        Access log format (default: text)

        =====================================================================
        """
        timeout = os.getenv("TOOLKIT_TIMEOUT")
        return cls(
            host=os.getenv("TOOLKIT_HOST", "127.0.0.1"),
            port=int(os.getenv("TOOLKIT_PORT", str(DEFAULT_PORT))),
            timeout=float(timeout) if timeout else None,
            max_request_size=int(os.getenv("TOOLKIT_MAX_REQUEST_SIZE", str(10 * 1024 * 1024))),
            default_language=os.getenv("TOOLKIT_LANGUAGE", DEFAULT_LANGUAGE),
            log_level=os.getenv("TOOLKIT_LOG_LEVEL", "INFO"),
            log_format=os.getenv("TOOLKIT_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at server construction so a bad value fails at startup,
        not on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size <= 0:
            raise ValueError("max_request_size must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if not self.default_language:
            raise ValueError("default_language must not be empty")
