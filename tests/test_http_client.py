"""Tests for shared HTTP helpers."""
import hashlib
from unittest.mock import patch, MagicMock

import pytest
import requests

from common.http_client import download_file, get_json, safe_get
from common.logging_utils import safe_url
from constants import Constants
from errors import RegistryError


def _response(status=200, text="", chunks=()):
    res = MagicMock()
    res.status_code = status
    res.text = text
    res.iter_content.return_value = list(chunks)
    return res


class TestSafeGet:
    """Test safe_get error mapping."""

    @patch('common.http_client.requests.get')
    def test_sets_timeout_and_user_agent(self, mock_get):
        mock_get.return_value = _response()

        safe_get("https://example.com/x", context="index")

        kwargs = mock_get.call_args.kwargs
        assert kwargs["timeout"] == Constants.REQUEST_TIMEOUT
        assert kwargs["headers"]["User-Agent"] == Constants.USER_AGENT

    @patch('common.http_client.requests.get', side_effect=requests.Timeout("slow"))
    def test_timeout_raises_registry_error(self, _mock_get):
        with pytest.raises(RegistryError, match="timed out"):
            safe_get("https://example.com/x", context="api")

    @patch('common.http_client.requests.get', side_effect=requests.ConnectionError("refused"))
    def test_connection_error_raises_registry_error(self, _mock_get):
        with pytest.raises(RegistryError, match="connection error"):
            safe_get("https://example.com/x", context="api")


class TestGetJson:
    """Test get_json decoding and status handling."""

    @patch('common.http_client.requests.get')
    def test_decodes_body(self, mock_get):
        mock_get.return_value = _response(text='{"versions": []}')
        assert get_json("https://example.com/x", context="api") == {"versions": []}

    @patch('common.http_client.requests.get')
    def test_non_200_raises_with_status(self, mock_get):
        mock_get.return_value = _response(status=500)
        with pytest.raises(RegistryError) as exc_info:
            get_json("https://example.com/x", context="api")
        assert exc_info.value.status_code == 500

    @patch('common.http_client.requests.get')
    def test_invalid_json_raises(self, mock_get):
        mock_get.return_value = _response(text="<html>")
        with pytest.raises(RegistryError, match="invalid JSON"):
            get_json("https://example.com/x", context="api")

    @patch('common.http_client.requests.get')
    def test_passes_params(self, mock_get):
        mock_get.return_value = _response(text="{}")
        get_json("https://example.com/x", context="api", params={"page": 2})
        assert mock_get.call_args.kwargs["params"] == {"page": 2}


class TestDownloadFile:
    """Test streaming downloads."""

    @patch('common.http_client.requests.get')
    def test_writes_file_and_returns_digest(self, mock_get, tmp_path):
        mock_get.return_value = _response(chunks=[b"abc", b"", b"def"])
        target = tmp_path / "cache" / "demo.crate"

        digest = download_file("https://example.com/demo.crate", target, context="download")

        assert target.read_bytes() == b"abcdef"
        assert digest == hashlib.sha256(b"abcdef").hexdigest()
        assert [p.name for p in target.parent.iterdir()] == ["demo.crate"]

    @patch('common.http_client.requests.get')
    def test_failed_status_leaves_no_file(self, mock_get, tmp_path):
        mock_get.return_value = _response(status=404)
        target = tmp_path / "demo.crate"

        with pytest.raises(RegistryError):
            download_file("https://example.com/demo.crate", target, context="download")

        assert not target.exists()

    @patch('common.http_client.requests.get')
    def test_interrupted_stream_cleans_up(self, mock_get, tmp_path):
        res = _response()
        res.iter_content.side_effect = requests.ConnectionError("reset")
        mock_get.return_value = res
        target = tmp_path / "demo.crate"

        with pytest.raises(RegistryError, match="interrupted"):
            download_file("https://example.com/demo.crate", target, context="download")

        assert list(tmp_path.iterdir()) == []


class TestSafeUrl:
    """Test credential stripping for logs."""

    def test_strips_credentials_and_query(self):
        assert safe_url("https://user:pw@example.com/p?token=1") == "https://***@example.com/p"
