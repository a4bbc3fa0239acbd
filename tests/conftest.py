import json

import httpx
import pytest

from workbench.adapters.outbound.jira_http_client import JiraHttpClient
from workbench.domain.jira import Board, CreatedIssue, JiraConfig, Sprint
from workbench.domain.result import ErrorKind, Result

BASE_URL = "https://example.atlassian.net"


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from real config files, credentials and log directories."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    for name in ("WORKBENCH_JIRA_URL", "WORKBENCH_JIRA_USER", "WORKBENCH_JIRA_TOKEN", "WORKBENCH_AI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)


@pytest.fixture
def jira_config():
    return JiraConfig(
        base_url=BASE_URL,
        username="me@example.com",
        api_token="secret-token",
        default_project="PROJ",
    )


def json_response(status, body=None, **kwargs):
    if body is None:
        return httpx.Response(status, **kwargs)
    return httpx.Response(status, content=json.dumps(body).encode("utf-8"),
                          headers={"Content-Type": "application/json"}, **kwargs)


class Recorder:
    """Routes MockTransport requests by (method, path) and keeps what was sent."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return json_response(404, {"errorMessages": [f"no route for {request.url.path}"]})
        if callable(route):
            return route(request)
        return route

    def transport(self):
        return httpx.MockTransport(self)

    def bodies(self, method, path):
        return [
            json.loads(r.content) for r in self.requests
            if r.method == method and r.url.path == path and r.content
        ]


@pytest.fixture
def make_http(jira_config):
    def _make(routes, config=None):
        recorder = Recorder(routes)
        client = JiraHttpClient(config or jira_config, transport=recorder.transport())
        return client, recorder
    return _make


class FakeAgilePort:
    """In-memory AgilePort: boards per project, sprints per board, scripted failures."""

    def __init__(self, boards=None, sprints=None, failures=None, attach_ok=True):
        self.boards = boards or {}
        self.sprints = sprints or {}
        self.failures = failures or {}
        self.attach_ok = attach_ok
        self.sprint_calls = []
        self.attached = []

    def list_boards(self, project_key):
        if ("boards", project_key) in self.failures:
            return Result.failure(*self.failures[("boards", project_key)])
        return Result.success([Board(id=b, name=f"Board {b}") for b in self.boards.get(project_key, [])])

    def get_active_sprints(self, board_id):
        self.sprint_calls.append(board_id)
        if ("sprints", board_id) in self.failures:
            return Result.failure(*self.failures[("sprints", board_id)])
        return Result.success(list(self.sprints.get(board_id, [])))

    def add_issue_to_sprint(self, sprint_id, issue_key):
        self.attached.append((sprint_id, issue_key))
        return self.attach_ok


class FakeJiraPort:
    def __init__(self, myself=None, create_result=None, search_result=None, issues=None):
        self.myself = myself if myself is not None else Result.success({"accountId": "acc-1", "displayName": "Me"})
        self.create_result = create_result or Result.success(
            CreatedIssue(key="PROJ-101", id="10101", url=f"{BASE_URL}/browse/PROJ-101")
        )
        self.search_result = search_result or Result.success([])
        self.issues = issues or {}
        self.created = []
        self.searches = []

    def get_myself(self):
        return self.myself

    def get_issue(self, key):
        if key in self.issues:
            return Result.success(self.issues[key])
        return Result.failure(ErrorKind.NOT_FOUND, f"Ticket {key} not found")

    def create_issue(self, issue_data):
        self.created.append(issue_data)
        return self.create_result

    def search(self, jql, fields, max_results=50):
        self.searches.append((jql, fields, max_results))
        return self.search_result


def sprint(sprint_id, name=None, end_date=None):
    return Sprint(id=sprint_id, name=name or f"Sprint {sprint_id}", end_date=end_date, state="active")
