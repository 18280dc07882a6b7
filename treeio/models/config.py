"""Connection settings shared by every request an HttpFetcher makes."""

from __future__ import annotations

import codecs
import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/60.0.3112.113 Safari/537.36"
)

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept-Language": "en-US,en;q=0.8",
    "Referer": "google.com",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_ENCODING = "utf-8"

ENV_PREFIX = "TREEIO_"


class RequestConfig(BaseModel):
    """Request headers, timeouts (milliseconds) and text encoding."""

    headers: Dict[str, str] = Field(default_factory=lambda: DEFAULT_HEADERS.copy())
    connect_timeout: int = DEFAULT_TIMEOUT_MS
    read_timeout: int = DEFAULT_TIMEOUT_MS
    encoding: str = DEFAULT_ENCODING

    model_config = {"validate_assignment": True}

    @field_validator("connect_timeout", "read_timeout")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("timeout should not be negative")
        return value

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            return codecs.lookup(value).name
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {value}") from exc

    @property
    def timeout(self) -> tuple[Optional[float], Optional[float]]:
        """The ``(connect, read)`` pair in seconds, ``None`` meaning no limit."""

        return _seconds(self.connect_timeout), _seconds(self.read_timeout)

    def get_header(self, key: str) -> Optional[str]:
        return self.headers.get(key)

    def set_header(self, key: str, value: Optional[str]) -> Optional[str]:
        """Sets a header and returns the previous value; ``None`` removes it."""

        if not key:
            raise ValueError("key should not be empty")
        if value is None:
            return self.headers.pop(key, None)
        previous = self.headers.get(key)
        self.headers[key] = value
        return previous

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "RequestConfig":
        """Builds a config from ``TREEIO_*`` variables, reading ``.env`` first."""

        load_dotenv(dotenv_path)
        config = cls()

        connect_timeout = _env_int("CONNECT_TIMEOUT")
        if connect_timeout is not None:
            config.connect_timeout = connect_timeout
        read_timeout = _env_int("READ_TIMEOUT")
        if read_timeout is not None:
            config.read_timeout = read_timeout
        encoding = _env_str("ENCODING")
        if encoding is not None:
            config.encoding = encoding
        user_agent = _env_str("USER_AGENT")
        if user_agent is not None:
            config.set_header("User-Agent", user_agent)
        return config


def _seconds(milliseconds: int) -> Optional[float]:
    # A zero timeout means waiting forever.
    return milliseconds / 1000.0 if milliseconds else None


def _env_str(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return None
    return value


def _env_int(name: str) -> int | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logging.warning("Ignoring non-integer %s%s=%r", ENV_PREFIX, name, value)
        return None
