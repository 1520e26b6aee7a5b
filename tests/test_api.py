"""Tests for the WildTraxAPI transport."""

import pytest

from wildtrax.api import USER_AGENT, WildTraxAPI
from wildtrax.exceptions import AuthenticationError, HTTPError

from conftest import make_response


class TestWildTraxAPI:
    """Tests for headers, URLs and error mapping."""

    def test_user_agent_set_on_session(self, api, http_session):
        assert http_session.headers["User-Agent"] == USER_AGENT
        assert USER_AGENT.startswith("wildtrax-python ")

    def test_url_joins_base_and_path(self, api):
        assert api.url("/bis/get-all-species") == "https://api.test/bis/get-all-species"
        assert api.url("bis/x") == "https://api.test/bis/x"

    def test_request_sends_bearer_header(self, api, http_session):
        http_session.request.return_value = make_response(json_data={"results": []})

        api.get_json("/bis/get-download-summary", params={"sensorId": "ARU"})

        call = http_session.request.call_args
        assert call.args == ("GET", "https://api.test/bis/get-download-summary")
        assert call.kwargs["headers"]["Authorization"] == "Bearer token-1"
        assert call.kwargs["headers"]["Accept"] == "application/json"
        assert call.kwargs["params"] == {"sensorId": "ARU"}
        assert call.kwargs["timeout"] is None

    def test_post_json_merges_extra_headers(self, api, http_session):
        http_session.request.return_value = make_response(json_data={"ok": True})

        result = api.post_json("/bis/x", {"a": 1}, headers=api.discover_headers())

        assert result == {"ok": True}
        call = http_session.request.call_args
        assert call.kwargs["json"] == {"a": 1}
        headers = call.kwargs["headers"]
        assert headers["Origin"] == "https://discover.wildtrax.ca"
        assert headers["Referer"] == "https://discover.wildtrax.ca/"
        assert headers["Authorization"] == "Bearer token-1"

    def test_error_status_raises_http_error(self, api, http_session):
        http_session.request.return_value = make_response(
            status=403, json_data={"message": "Not allowed"}, url="https://api.test/bis/x"
        )

        with pytest.raises(HTTPError) as exc_info:
            api.get_json("/bis/x")

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Not allowed"
        assert "403" in str(exc_info.value)

    def test_error_without_json_uses_body_text(self, api, http_session):
        http_session.request.return_value = make_response(status=502, text="Bad gateway")

        with pytest.raises(HTTPError) as exc_info:
            api.post_json("/bis/x")

        assert exc_info.value.message == "Bad gateway"

    def test_expired_token_blocks_request(self, api, http_session, clock):
        clock.advance(hours=2)

        with pytest.raises(AuthenticationError):
            api.get_json("/bis/x")
        http_session.request.assert_not_called()

    def test_stream_to_file(self, api, http_session, tmp_path):
        http_session.request.return_value = make_response(chunks=[b"abc", b"", b"def"])
        target = tmp_path / "out.zip"

        api.stream_to_file("/bis/download-report", target, params={"a": "b"}, accept="application/zip")

        assert target.read_bytes() == b"abcdef"
        call = http_session.request.call_args
        assert call.kwargs["stream"] is True
        assert call.kwargs["headers"]["Accept"] == "application/zip"
