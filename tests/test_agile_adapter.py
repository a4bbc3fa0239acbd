import httpx

from conftest import json_response
from workbench.adapters.outbound.agile_adapter import AgileAdapter
from workbench.adapters.outbound.jira_http_client import JiraHttpClient
from workbench.domain.result import ErrorKind


class TestBoardsAndSprints:
    def test_list_boards(self, make_http):
        http, recorder = make_http({
            ("GET", "/rest/agile/1.0/board"): json_response(200, {"values": [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]}),
        })

        boards = AgileAdapter(http).list_boards("PROJ").value

        assert [(b.id, b.name) for b in boards] == [(1, "A"), (2, "B")]
        assert recorder.requests[0].url.params["projectKeyOrId"] == "PROJ"

    def test_active_sprints_query(self, make_http):
        http, recorder = make_http({
            ("GET", "/rest/agile/1.0/board/7/sprint"): json_response(200, {
                "values": [{"id": 55, "name": "Sprint 55", "state": "active", "endDate": "2026-10-24T00:00:00.000Z"}],
            }),
        })

        sprints = AgileAdapter(http).get_active_sprints(7).value

        assert sprints[0].id == 55
        assert sprints[0].end_date == "2026-10-24T00:00:00.000Z"
        assert recorder.requests[0].url.params["state"] == "active"

    def test_board_not_found(self, make_http):
        http, _ = make_http({("GET", "/rest/agile/1.0/board/9/sprint"): json_response(404, {})})
        assert AgileAdapter(http).get_active_sprints(9).error.kind is ErrorKind.NOT_FOUND

    def test_boards_unauthorized(self, make_http):
        http, _ = make_http({("GET", "/rest/agile/1.0/board"): json_response(401, {})})
        assert AgileAdapter(http).list_boards("PROJ").error.kind is ErrorKind.AUTH


class TestAddIssueToSprint:
    def test_no_content_means_added(self, make_http):
        http, recorder = make_http({("POST", "/rest/agile/1.0/sprint/55/issue"): httpx.Response(204)})

        assert AgileAdapter(http).add_issue_to_sprint(55, "PROJ-1") is True
        assert recorder.bodies("POST", "/rest/agile/1.0/sprint/55/issue") == [{"issues": ["PROJ-1"]}]

    def test_any_other_status_is_not_added(self, make_http):
        http, _ = make_http({("POST", "/rest/agile/1.0/sprint/55/issue"): json_response(200, {})})
        assert AgileAdapter(http).add_issue_to_sprint(55, "PROJ-1") is False

    def test_transport_error_is_not_added(self, jira_config):
        def handler(request):
            raise httpx.ConnectError("refused")

        adapter = AgileAdapter(JiraHttpClient(jira_config, transport=httpx.MockTransport(handler)))
        assert adapter.add_issue_to_sprint(55, "PROJ-1") is False
