"""Tests for URL validation and file name helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from treeio.utils.url_utils import (
    content_disposition_directive,
    encode_url_path,
    file_name_from_response,
    file_name_from_url,
    is_valid_url,
    mac_address,
    url_of,
)


class TestValidUrl:
    def test_valid(self):
        assert is_valid_url("https://example.com/files/report.txt")
        assert is_valid_url("http://example.com:8080/a%20b?x=1#top")

    def test_invalid(self):
        assert not is_valid_url(None)
        assert not is_valid_url("")
        assert not is_valid_url("example.com/path")
        assert not is_valid_url("https://example.com/a b")
        assert not is_valid_url("https://example.com/%zz")
        assert not is_valid_url("http://example.com:port/")

    def test_url_of(self):
        assert url_of("https://example.com/") == "https://example.com/"
        assert url_of("not a url") is None
        with pytest.raises(ValueError):
            url_of(None)


class TestEncodeUrlPath:
    def test_encodes_last_segment(self):
        result = encode_url_path("https://example.com/dir/a b+c.txt?x=1#frag")
        assert result == "https://example.com/dir/a+b%2Bc.txt"

    def test_keep_encoded_plus(self):
        result = encode_url_path("https://example.com/dir/a b+c.txt", keep_encoded_plus=True)
        assert result == "https://example.com/dir/a+b+c.txt"

    def test_non_ascii(self):
        result = encode_url_path("https://example.com/été.txt")
        assert result == "https://example.com/%C3%A9t%C3%A9.txt"
        assert is_valid_url(result)


class TestContentDisposition:
    def test_quoted(self):
        assert content_disposition_directive('attachment; filename="a b.txt"', "filename") == "a b.txt"

    def test_unquoted(self):
        assert content_disposition_directive("attachment; filename=report.pdf", "filename") == "report.pdf"

    def test_case_insensitive(self):
        assert content_disposition_directive('Attachment; FileName="A.txt"', "filename") == "A.txt"

    def test_picks_requested_directive(self):
        disposition = "attachment; filename=\"plain.txt\"; filename*=UTF-8''fancy.txt"
        assert content_disposition_directive(disposition, "filename") == "plain.txt"
        assert content_disposition_directive(disposition, "filename*") == "UTF-8''fancy.txt"

    def test_missing(self):
        assert content_disposition_directive("inline", "filename") is None

    def test_empty_directive(self):
        with pytest.raises(ValueError):
            content_disposition_directive("attachment", "")


class TestFileNameFromUrl:
    def test_last_segment_decoded(self):
        assert file_name_from_url("https://example.com/a/b%20c.txt") == "b c.txt"
        assert file_name_from_url("https://example.com/a/b+c.txt") == "b c.txt"

    def test_no_segment(self):
        assert file_name_from_url("https://example.com") is None
        assert file_name_from_url("https://example.com/") is None

    def test_tab_becomes_space(self):
        assert file_name_from_url("https://example.com/a\tb.txt") == "a b.txt"

    def test_query_is_ignored(self):
        assert file_name_from_url("https://example.com/get/data.csv?token=1") == "data.csv"

    def test_other_encoding(self):
        assert file_name_from_url("https://example.com/%E9t%E9.txt", "latin-1") == "été.txt"

    def test_undecodable_value_is_kept(self):
        assert file_name_from_url("https://example.com/%E9t%E9.txt", "utf-8") == "%E9t%E9.txt"


class TestFileNameFromResponse:
    def test_extended_filename_wins(self, response_factory):
        response = response_factory(
            headers={"Content-Disposition": "attachment; filename*=UTF-8''na%C3%AFve.txt"}
        )
        assert file_name_from_response(response) == "naïve.txt"

    def test_plain_filename(self, response_factory):
        response = response_factory(headers={"Content-Disposition": 'attachment; filename="data.bin"'})
        assert file_name_from_response(response) == "data.bin"

    def test_falls_back_to_url(self, response_factory):
        assert file_name_from_response(response_factory()) == "report.txt"
        response = response_factory(headers={"Content-Disposition": "inline"})
        assert file_name_from_response(response) == "report.txt"


class TestMacAddress:
    def test_formats_hardware_address(self):
        with patch("treeio.utils.url_utils.uuid.getnode", return_value=0x001122AABBCC):
            assert mac_address() == "00:11:22:AA:BB:CC"
            assert mac_address("-") == "00-11-22-AA-BB-CC"

    def test_random_node_is_rejected(self):
        with patch("treeio.utils.url_utils.uuid.getnode", return_value=0x010000000001):
            assert mac_address() is None
