"""Download inspection helpers."""

from .download_info import DownloadDescriptor

__all__ = ["DownloadDescriptor"]
