"""
Service configuration with fail-closed defaults.

Required:
- VERIFIER_PRIVATE_KEY: secp256k1 key that signs arrivals
- API_KEY: shared secret expected in the x-api-key header

Optional:
- IP_CHECK_ENABLED: IP country / proxy screening (default: false)
- IP_LOOKUP_URL, IP_LOOKUP_TIMEOUT_S: lookup endpoint for the IP check
- CORS_ORIGINS: comma separated allowed origins (default: *)
- HOST, PORT, LOG_LEVEL: server process settings
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

DEFAULT_IP_LOOKUP_URL = "http://ip-api.com/json/{ip}?fields=status,countryCode,proxy,hosting"


def _req(name: str) -> str:
    """Get required environment variable or raise."""
    v = os.getenv(name)
    if not v:
        raise RuntimeError(f"Missing required env var: {name}")
    return v


def _opt(name: str, default: str) -> str:
    """Get optional environment variable with default."""
    return os.getenv(name, default)


def _opt_bool(name: str, default: bool) -> bool:
    """Parse boolean environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _opt_list(name: str, default: str) -> Tuple[str, ...]:
    raw = _opt(name, default)
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    """Attestation service configuration."""

    VERIFIER_PRIVATE_KEY: str = field(repr=False)
    API_KEY: str = field(repr=False)

    # IP screening (off unless explicitly enabled)
    IP_CHECK_ENABLED: bool = False
    IP_LOOKUP_URL: str = DEFAULT_IP_LOOKUP_URL
    IP_LOOKUP_TIMEOUT_S: float = 5.0

    CORS_ORIGINS: Tuple[str, ...] = ("*",)
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    LOG_LEVEL: str = "INFO"

    @staticmethod
    def load() -> Settings:
        """
        Load settings from environment variables.

        Raises:
            RuntimeError: If a required secret is missing
        """
        return Settings(
            VERIFIER_PRIVATE_KEY=_req("VERIFIER_PRIVATE_KEY"),
            API_KEY=_req("API_KEY"),
            IP_CHECK_ENABLED=_opt_bool("IP_CHECK_ENABLED", False),
            IP_LOOKUP_URL=_opt("IP_LOOKUP_URL", DEFAULT_IP_LOOKUP_URL),
            IP_LOOKUP_TIMEOUT_S=float(_opt("IP_LOOKUP_TIMEOUT_S", "5")),
            CORS_ORIGINS=_opt_list("CORS_ORIGINS", "*"),
            HOST=_opt("HOST", "0.0.0.0"),
            PORT=int(_opt("PORT", "3001")),
            LOG_LEVEL=_opt("LOG_LEVEL", "INFO").upper(),
        )
