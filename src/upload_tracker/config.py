"""
Configuration for the upload tracker.
Loads environment variables (optionally from a .env file) and validates them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

from upload_tracker.initiator import DEFAULT_EXTERNAL_HOSTS

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Upload tracker settings."""

    base_url: str = "http://localhost:8080"
    socket_path: str = "/socket"
    timeout: float = 10.0
    external_hosts: tuple[str, ...] = field(default=DEFAULT_EXTERNAL_HOSTS)
    reconnect_delay: float = 1.0
    reconnect_max_delay: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """
        Build settings from UPLOAD_TRACKER_* environment variables.
        Raises ValueError if a variable holds an invalid value.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        base_url = os.getenv("UPLOAD_TRACKER_BASE_URL", cls.base_url).rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ValueError(f"UPLOAD_TRACKER_BASE_URL must be an http(s) URL, got {base_url!r}")

        hosts_raw = os.getenv("UPLOAD_TRACKER_EXTERNAL_HOSTS")
        if hosts_raw is None:
            external_hosts = DEFAULT_EXTERNAL_HOSTS
        else:
            external_hosts = tuple(h.strip() for h in hosts_raw.split(",") if h.strip())

        log_level = os.getenv("LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL is not a logging level: {log_level!r}")

        reconnect_delay = _get_float("UPLOAD_TRACKER_RECONNECT_DELAY", cls.reconnect_delay)
        reconnect_max_delay = _get_float(
            "UPLOAD_TRACKER_RECONNECT_MAX_DELAY", cls.reconnect_max_delay
        )
        if reconnect_max_delay < reconnect_delay:
            raise ValueError(
                "UPLOAD_TRACKER_RECONNECT_MAX_DELAY must not be below UPLOAD_TRACKER_RECONNECT_DELAY"
            )

        return cls(
            base_url=base_url,
            socket_path=os.getenv("UPLOAD_TRACKER_SOCKET_PATH", cls.socket_path),
            timeout=_get_float("UPLOAD_TRACKER_TIMEOUT", cls.timeout),
            external_hosts=external_hosts,
            reconnect_delay=reconnect_delay,
            reconnect_max_delay=reconnect_max_delay,
            log_level=log_level,
        )


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging in the format used across the project."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
