"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, List, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from treeio.fs.archive import ZipFileSystem


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_files() -> Callable[..., List[Path]]:
    """Create files (and their parents) below a base directory."""

    def _make(base: Path, names: Iterable[str], content: Optional[str] = None) -> List[Path]:
        created = []
        for name in names:
            path = base / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(name if content is None else content)
            created.append(path)
        return created

    return _make


@pytest.fixture
def archive(temp_dir: Path) -> Generator[ZipFileSystem, None, None]:
    """An open, empty archive that is closed after the test."""
    zip_fs = ZipFileSystem(temp_dir / "test.zip")
    try:
        yield zip_fs
    finally:
        zip_fs.close()


def make_response(
    status: int = 200,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://example.com/files/report.txt",
) -> requests.Response:
    """Build a real ``requests.Response`` backed by an in-memory body."""
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = url
    response.raw = io.BytesIO(body)
    return response


@pytest.fixture
def response_factory() -> Callable[..., requests.Response]:
    return make_response
