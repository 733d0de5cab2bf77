"""
Configuration for xswap components.

Defaults live on the dataclasses; `from_env()` overrides them from the
process environment the way the server is deployed.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class LedgerConfig:
    """In-memory ledger configuration."""
    start_timestamp: Optional[int] = None   # None = wall clock at construction
    address_length: int = 56        # "C" + 55 hex chars

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        return cls(
            start_timestamp=_env_int("XSWAP_START_TIMESTAMP", None),
        )


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    escrow_duration: int = 24 * 3600    # default seconds until escrow cancel opens

    @property
    def level(self) -> int:
        """Numeric logging level; unknown names fall back to INFO."""
        level = getattr(logging, self.log_level, None)
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def from_env(cls) -> "ServerConfig":
        origins = os.environ.get("XSWAP_CORS_ORIGINS", "*")
        return cls(
            host=os.environ.get("XSWAP_HOST", "0.0.0.0"),
            port=_env_int("PORT", 8080),
            log_level=os.environ.get("XSWAP_LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            escrow_duration=_env_int("XSWAP_ESCROW_DURATION", 24 * 3600),
        )
