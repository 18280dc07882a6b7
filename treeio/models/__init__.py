"""Configuration and option types shared across the package."""

from .config import DEFAULT_HEADERS, RequestConfig
from .options import CopyOption

__all__ = ["RequestConfig", "DEFAULT_HEADERS", "CopyOption"]
