import base64
import logging
from dataclasses import replace

import httpx

from conftest import BASE_URL, json_response
from workbench.adapters.outbound.jira_http_client import AGILE_API, JiraHttpClient, make_auth_header
from workbench.domain.result import ErrorKind


class TestMakeAuthHeader:
    def test_basic_auth_encoding(self):
        header = make_auth_header("me@example.com", "tok").value
        assert header.startswith("Basic ")
        assert base64.b64decode(header[6:]).decode() == "me@example.com:tok"

    def test_blank_credentials_are_config_failure(self):
        for user, token in [("", "tok"), ("me", None), ("  ", "tok"), ("me", " ")]:
            result = make_auth_header(user, token)
            assert result.error.kind is ErrorKind.CONFIG
            assert result.error.message == "Username and API token are required"


class TestRequest:
    def test_builds_url_and_headers(self, make_http):
        client, recorder = make_http({("GET", "/rest/api/3/myself"): json_response(200, {"accountId": "a"})})

        result = client.request("GET", "/myself")

        assert result.ok
        assert result.value.status == 200
        assert result.value.body == {"accountId": "a"}
        sent = recorder.requests[0]
        assert str(sent.url) == f"{BASE_URL}/rest/api/3/myself"
        assert sent.headers["Authorization"].startswith("Basic ")
        assert sent.headers["Accept"] == "application/json"

    def test_agile_api_prefix_and_params(self, make_http):
        client, recorder = make_http({("GET", "/rest/agile/1.0/board"): json_response(200, {"values": []})})

        client.request("GET", "/board", api=AGILE_API, params={"projectKeyOrId": "PROJ"})

        assert recorder.requests[0].url.params["projectKeyOrId"] == "PROJ"

    def test_non_2xx_is_returned_as_response(self, make_http):
        client, _ = make_http({("GET", "/rest/api/3/issue/X-1"): json_response(500, {"errorMessages": ["boom"]})})

        result = client.request("GET", "/issue/X-1")

        assert result.ok
        assert result.value.status == 500

    def test_unencodable_body_is_failure_not_exception(self, make_http):
        client, recorder = make_http({})

        result = client.request("POST", "/issue", json={"fields": {"customfield_1": {"a", "b"}}})

        assert result.error.kind is ErrorKind.EXTERNAL_API
        assert "not JSON serializable" in result.error.message
        assert recorder.requests == []

    def test_non_json_body_kept_as_text(self, make_http):
        html = httpx.Response(502, text="<html>Bad gateway</html>")
        client, _ = make_http({("GET", "/rest/api/3/myself"): html})

        result = client.request("GET", "/myself")

        assert result.value.body == "<html>Bad gateway</html>"
        assert result.value.body_dict() == {}

    def test_empty_body_is_none(self, make_http):
        client, _ = make_http({("POST", "/rest/agile/1.0/sprint/5/issue"): httpx.Response(204)})

        result = client.request("POST", "/sprint/5/issue", api=AGILE_API, json={"issues": ["PROJ-1"]})

        assert result.value.status == 204
        assert result.value.body is None

    def test_missing_credentials_do_not_send(self, jira_config):
        calls = []
        transport = httpx.MockTransport(lambda r: calls.append(r) or httpx.Response(200))
        client = JiraHttpClient(replace(jira_config, api_token=""), transport=transport)

        result = client.request("GET", "/myself")

        assert result.error.kind is ErrorKind.CONFIG
        assert calls == []


class TestTransportErrors:
    def _client(self, jira_config, exc):
        def handler(request):
            raise exc
        return JiraHttpClient(jira_config, transport=httpx.MockTransport(handler))

    def test_timeout(self, jira_config):
        client = self._client(jira_config, httpx.ReadTimeout("timed out"))
        assert client.request("GET", "/myself").error.kind is ErrorKind.TIMEOUT

    def test_connection_error_is_network(self, jira_config):
        client = self._client(jira_config, httpx.ConnectError("refused"))
        result = client.request("GET", "/myself")
        assert result.error.kind is ErrorKind.NETWORK
        assert result.error.message == f"Could not connect to Jira server: {BASE_URL}"

    def test_bad_scheme_is_config(self, jira_config):
        client = JiraHttpClient(replace(jira_config, base_url="ftp://example.com"))
        assert client.request("GET", "/myself").error.kind is ErrorKind.CONFIG


class TestDebugTrace:
    def test_trace_lines_only_when_debug(self, make_http, jira_config, caplog):
        routes = {("GET", "/rest/api/3/myself"): json_response(200, {"accountId": "a"})}
        caplog.set_level(logging.DEBUG, logger="workbench.adapters.outbound.jira_http_client")

        quiet, _ = make_http(routes)
        quiet.request("GET", "/myself")
        assert not [r for r in caplog.records if "[JIRA-DEBUG]" in r.getMessage()]

        loud, _ = make_http(routes, config=replace(jira_config, debug=True))
        loud.request("GET", "/myself")
        messages = [r.getMessage() for r in caplog.records if "[JIRA-DEBUG]" in r.getMessage()]
        assert any("HTTP GET" in m for m in messages)
        assert any("Response status: 200" in m for m in messages)
