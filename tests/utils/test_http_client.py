"""Tests for HttpFetcher and the response helpers."""

from __future__ import annotations

import io
from unittest.mock import Mock, patch

import pytest
import requests

from treeio.models import CopyOption, RequestConfig
from treeio.utils.http_client import HttpFetcher, raise_for_status, write_body

START = "https://example.com/files/report.txt"


@pytest.fixture
def fetcher():
    client = HttpFetcher()
    try:
        yield client
    finally:
        client.close()


def redirect(response_factory, location, url=START, cookie=None):
    headers = {"Location": location}
    if cookie is not None:
        headers["Set-Cookie"] = cookie
    return response_factory(status=302, headers=headers, url=url)


class TestHeaders:
    def test_defaults(self, fetcher):
        assert "Chrome" in fetcher.user_agent
        assert fetcher.accept_language == "en-US,en;q=0.8"
        assert fetcher.referer == "google.com"
        assert fetcher.upgrade_insecure_requests is True
        assert fetcher.connect_timeout == 5000
        assert fetcher.read_timeout == 5000
        assert fetcher.encoding == "utf-8"

    def test_set_and_remove(self, fetcher):
        assert fetcher.set_header("X-Test", "1") is None
        assert fetcher.set_header("X-Test", "2") == "1"
        assert fetcher.get_header("X-Test") == "2"
        fetcher.referer = None
        assert "Referer" not in fetcher.headers
        fetcher.upgrade_insecure_requests = False
        assert fetcher.get_header("Upgrade-Insecure-Requests") == "0"

    def test_negative_timeout_rejected(self, fetcher):
        with pytest.raises(ValueError):
            fetcher.connect_timeout = -1


class TestConnect:
    def test_sends_configured_request(self, response_factory):
        config = RequestConfig(connect_timeout=1500, read_timeout=0)
        fetcher = HttpFetcher(config)
        with patch.object(fetcher._session, "get", return_value=response_factory()) as get:
            fetcher.connect(START, extra_headers={"X-Extra": "yes"})

        kwargs = get.call_args.kwargs
        assert kwargs["timeout"] == (1.5, None)
        assert kwargs["stream"] is True
        assert kwargs["allow_redirects"] is True
        assert kwargs["headers"]["X-Extra"] == "yes"
        assert kwargs["headers"]["User-Agent"] == fetcher.user_agent
        fetcher.close()

    def test_failure_is_logged_and_raised(self, fetcher, caplog):
        with patch.object(fetcher._session, "get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(requests.ConnectionError):
                fetcher.connect(START)
        assert "HTTP GET to" in caplog.text

    def test_session_keeps_no_cookies(self, fetcher):
        assert not fetcher._session.cookies.get_policy().allowed_domains()


class TestRead:
    def test_decodes_body(self, fetcher, response_factory):
        with patch.object(fetcher._session, "get", return_value=response_factory(body="héllo".encode())):
            assert fetcher.read(START) == "héllo"

    def test_error_body_in_message(self, fetcher, response_factory):
        response = response_factory(status=404, body=b"no such report")
        with patch.object(fetcher._session, "get", return_value=response):
            with pytest.raises(requests.HTTPError) as excinfo:
                fetcher.read(START)
        assert "no such report" in str(excinfo.value)
        assert START in str(excinfo.value)


class TestRaiseForStatus:
    def test_success_passes(self, response_factory):
        raise_for_status(response_factory(body=b"fine"), "utf-8")

    def test_body_is_folded(self, response_factory):
        with pytest.raises(requests.HTTPError) as excinfo:
            raise_for_status(response_factory(status=500, body=b"boom"), "utf-8")
        assert str(excinfo.value) == f"Failed to read from {START}: boom"
        assert isinstance(excinfo.value.__cause__, requests.HTTPError)

    def test_empty_body_keeps_original(self, response_factory):
        with pytest.raises(requests.HTTPError) as excinfo:
            raise_for_status(response_factory(status=500), "utf-8")
        assert "500 Server Error" in str(excinfo.value)

    def test_unreadable_body_keeps_original(self, response_factory):
        response = response_factory(status=503)
        response.raw = Mock(spec=["read", "close"])
        response.raw.read.side_effect = requests.ConnectionError("reset")
        with pytest.raises(requests.HTTPError) as excinfo:
            raise_for_status(response, "utf-8")
        assert "503 Server Error" in str(excinfo.value)


class TestWriteBody:
    def test_to_sink(self, response_factory):
        sink = io.BytesIO()
        write_body(response_factory(body=b"payload"), sink)
        assert sink.getvalue() == b"payload"

    def test_to_path(self, temp_dir, response_factory):
        target = temp_dir / "out.bin"
        write_body(response_factory(body=b"payload"), target)
        assert target.read_bytes() == b"payload"

    def test_existing_target(self, temp_dir, response_factory):
        target = temp_dir / "out.bin"
        target.write_bytes(b"old")
        with pytest.raises(FileExistsError):
            write_body(response_factory(body=b"new"), target)
        write_body(response_factory(body=b"new"), target, CopyOption.REPLACE_EXISTING)
        assert target.read_bytes() == b"new"

    def test_to_archive_entry(self, archive, response_factory):
        write_body(response_factory(body=b"zipped"), archive.entry_path("report.txt"))
        assert archive.entry_path("report.txt").read_bytes() == b"zipped"


class TestDownload:
    def test_download_to_path(self, fetcher, temp_dir, response_factory):
        target = temp_dir / "report.txt"
        with patch.object(fetcher._session, "get", return_value=response_factory(body=b"data")):
            fetcher.download(START, target)
        assert target.read_text() == "data"

    def test_download_error_writes_nothing(self, fetcher, temp_dir, response_factory):
        target = temp_dir / "report.txt"
        with patch.object(fetcher._session, "get", return_value=response_factory(status=404, body=b"gone")):
            with pytest.raises(requests.HTTPError):
                fetcher.download(START, target)
        assert not target.exists()

    def test_download_info(self, fetcher, response_factory):
        response = response_factory(headers={"Content-Length": "1500"})
        with patch.object(fetcher._session, "get", return_value=response):
            with fetcher.get_download_info(START) as info:
                assert info.size == 1500
                assert info.file_name() == "report.txt"


class TestResolveRedirects:
    def test_no_redirect(self, fetcher, response_factory):
        with patch.object(fetcher._session, "get", return_value=response_factory()) as get:
            assert fetcher.resolve_redirects(START) == START
        assert get.call_count == 1
        assert get.call_args.kwargs["allow_redirects"] is False

    def test_follows_chain(self, fetcher, response_factory):
        responses = [
            redirect(response_factory, "https://cdn.example.com/a"),
            redirect(response_factory, "/b", url="https://cdn.example.com/a"),
            response_factory(url="https://cdn.example.com/b"),
        ]
        with patch.object(fetcher._session, "get", side_effect=responses) as get:
            assert fetcher.resolve_redirects(START) == "https://cdn.example.com/b"
        assert [call.args[0] for call in get.call_args_list] == [
            START,
            "https://cdn.example.com/a",
            "https://cdn.example.com/b",
        ]

    def test_repeated_location_stops(self, fetcher, response_factory):
        loop = "https://example.com/loop"
        with patch.object(
            fetcher._session, "get", side_effect=lambda *a, **k: redirect(response_factory, loop)
        ) as get:
            assert fetcher.resolve_redirects(START) == loop
        assert get.call_count == 2

    def test_hop_limit(self, fetcher, response_factory):
        targets = ["https://example.com/ping", "https://example.com/pong"]
        calls = []

        def alternate(url, **kwargs):
            calls.append(url)
            return redirect(response_factory, targets[len(calls) % 2], url=url)

        with patch.object(fetcher._session, "get", side_effect=alternate):
            fetcher.resolve_redirects(START, max_hops=5)
        assert len(calls) == 5

    def test_forwards_cookies(self, fetcher, response_factory):
        responses = [
            redirect(response_factory, "https://example.com/next", cookie="session=abc"),
            response_factory(url="https://example.com/next"),
        ]
        with patch.object(fetcher._session, "get", side_effect=responses) as get:
            fetcher.resolve_redirects(START)
        first, second = get.call_args_list
        assert "Set-Cookie" not in first.kwargs["headers"]
        assert second.kwargs["headers"]["Set-Cookie"] == "session=abc"

    def test_keep_encoded_plus(self, fetcher, response_factory):
        responses = [
            redirect(response_factory, "https://example.com/a%2Bb.txt"),
            response_factory(url="https://example.com/a+b.txt"),
        ]
        with patch.object(fetcher._session, "get", side_effect=responses):
            assert fetcher.resolve_redirects(START, keep_encoded_plus=True) == "https://example.com/a+b.txt"

    def test_invalid_location_encodes_current_url(self, fetcher, response_factory):
        current = "https://example.com/files/a b.txt"
        responses = [
            redirect(response_factory, "https://bad host/x", url=current),
            response_factory(url="https://example.com/files/a+b.txt"),
        ]
        with patch.object(fetcher._session, "get", side_effect=responses) as get:
            assert fetcher.resolve_redirects(current) == "https://example.com/files/a+b.txt"
        assert get.call_args_list[1].args[0] == "https://example.com/files/a+b.txt"

    def test_unusable_location_returns_url_so_far(self, fetcher, response_factory):
        current = "https://bad host/a.txt"
        response = redirect(response_factory, "https://also bad/", url=current)
        with patch.object(fetcher._session, "get", return_value=response) as get:
            assert fetcher.resolve_redirects(current) == current
        assert get.call_count == 1

    def test_max_hops_must_be_positive(self, fetcher):
        with pytest.raises(ValueError):
            fetcher.resolve_redirects(START, max_hops=0)
