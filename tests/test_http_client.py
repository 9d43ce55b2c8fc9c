"""Tests for the bounded-timeout retrying GET helper."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.errors import RegistryError
from common.http_client import safe_get
from common.logging_utils import safe_url


def _response(status_code, reason="OK"):
    res = MagicMock()
    res.status_code = status_code
    res.reason = reason
    res.ok = status_code < 400
    return res


class TestSafeGet:
    """Retry and timeout policy."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_returns_first_success(self, mock_get, mock_sleep):
        mock_get.return_value = _response(200)
        res = safe_get("https://registry.test/x", context="x", timeout=7)
        assert res.status_code == 200
        assert mock_get.call_count == 1
        assert mock_get.call_args.kwargs["timeout"] == 7
        mock_sleep.assert_not_called()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_retries_connection_errors_with_backoff(self, mock_get, mock_sleep):
        mock_get.side_effect = [requests.ConnectionError("boom"), requests.Timeout(), _response(200)]
        res = safe_get("https://registry.test/x", context="x", retry_max=3, retry_base_delay=0.5)
        assert res.status_code == 200
        assert mock_get.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_retries_server_errors(self, mock_get, mock_sleep):
        mock_get.side_effect = [_response(503, "Service Unavailable"), _response(200)]
        res = safe_get("https://registry.test/x", context="x", retry_max=2)
        assert res.status_code == 200
        assert mock_get.call_count == 2

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_client_errors_not_retried(self, mock_get, mock_sleep):
        mock_get.return_value = _response(404, "Not Found")
        res = safe_get("https://registry.test/x", context="x", retry_max=3)
        assert res.status_code == 404
        assert mock_get.call_count == 1

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_exhausted_retries_raise_registry_error(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.Timeout()
        with pytest.raises(RegistryError) as excinfo:
            safe_get("https://registry.test/x", context="x", retry_max=2, timeout=1)
        assert "2 attempts" in str(excinfo.value)
        assert mock_get.call_count == 2


class TestSafeUrl:
    """Credentials never reach log lines."""

    def test_strips_userinfo_and_tokens(self):
        cleaned = safe_url("https://user:pw@registry.test/pkg?token=abc&x=1")
        assert "pw" not in cleaned
        assert "abc" not in cleaned
        assert "x=1" in cleaned

    def test_plain_url_unchanged(self):
        assert safe_url("https://registry.test/pkg") == "https://registry.test/pkg"
