"""Tests for DownloadDescriptor."""

from __future__ import annotations

import io

import pytest
import requests

from treeio.downloader import DownloadDescriptor
from treeio.models import CopyOption


class TestHeaders:
    def test_properties(self, response_factory):
        response = response_factory(
            headers={
                "Content-Type": "text/plain",
                "Content-Length": "1550000",
                "Content-Disposition": 'attachment; filename="q3 report.txt"',
            }
        )
        with DownloadDescriptor(response) as info:
            assert info.url == "https://example.com/files/report.txt"
            assert info.content_type == "text/plain"
            assert info.size == 1_550_000
            assert info.decimal_size == "1.6 MB"
            assert info.binary_size == "1.5 MiB"
            assert info.directive("filename") == "q3 report.txt"
            assert info.file_name() == "q3 report.txt"

    def test_missing_headers(self, response_factory):
        info = DownloadDescriptor(response_factory())
        assert info.size == -1
        assert info.content_type is None
        assert info.directive("filename") is None
        assert info.file_name() == "report.txt"

    def test_malformed_length(self, response_factory):
        info = DownloadDescriptor(response_factory(headers={"Content-Length": "lots"}))
        assert info.size == -1

    def test_file_name_encoding(self, response_factory):
        info = DownloadDescriptor(response_factory(url="https://example.com/%E9t%E9.txt"), "latin-1")
        assert info.file_name() == "été.txt"

    def test_requires_response(self):
        with pytest.raises(ValueError):
            DownloadDescriptor(None)


class TestDownload:
    def test_to_sink(self, response_factory):
        sink = io.BytesIO()
        DownloadDescriptor(response_factory(body=b"body")).download(sink)
        assert sink.getvalue() == b"body"

    def test_error_status(self, response_factory):
        info = DownloadDescriptor(response_factory(status=403, body=b"forbidden"))
        with pytest.raises(requests.HTTPError) as excinfo:
            info.download(io.BytesIO())
        assert "forbidden" in str(excinfo.value)

    def test_to_directory(self, temp_dir, response_factory):
        response = response_factory(
            body=b"csv",
            headers={"Content-Disposition": 'attachment; filename="data:2024.csv"'},
        )
        target = DownloadDescriptor(response).download_to_directory(temp_dir)
        assert target == temp_dir / "data2024.csv"
        assert target.read_bytes() == b"csv"

    def test_to_directory_existing(self, temp_dir, response_factory):
        (temp_dir / "report.txt").write_bytes(b"old")
        with pytest.raises(FileExistsError):
            DownloadDescriptor(response_factory(body=b"new")).download_to_directory(temp_dir)
        DownloadDescriptor(response_factory(body=b"new")).download_to_directory(
            temp_dir, CopyOption.REPLACE_EXISTING
        )
        assert (temp_dir / "report.txt").read_bytes() == b"new"

    def test_to_archive_directory(self, archive, response_factory):
        target = DownloadDescriptor(response_factory(body=b"zip me")).download_to_directory(archive.root())
        assert str(target) == "/report.txt"
        assert target.read_bytes() == b"zip me"

    def test_directory_must_exist(self, temp_dir, response_factory):
        with pytest.raises(NotADirectoryError):
            DownloadDescriptor(response_factory()).download_to_directory(temp_dir / "missing")
