import logging

from workbench.adapters.outbound.jira_http_client import AGILE_API, JiraHttpClient
from workbench.domain.jira import Board, JiraResponse, Sprint
from workbench.domain.result import ErrorKind, Result

logger = logging.getLogger(__name__)


def _status_failure(response: JiraResponse, context_msg: str) -> Result:
    status = response.status
    if status in (401, 403):
        kind = ErrorKind.AUTH
    elif status == 404:
        kind = ErrorKind.NOT_FOUND
    else:
        kind = ErrorKind.EXTERNAL_API
    return Result.failure(
        kind,
        f"{context_msg} failed: HTTP {status} {response.reason}".rstrip(),
        {"status": status, "body": response.body},
    )


class AgileAdapter:
    """Jira Agile REST API (보드 / 스프린트)와 통신하는 Outbound Adapter"""

    def __init__(self, http: JiraHttpClient):
        self.http = http

    def list_boards(self, project_key: str) -> Result[list[Board]]:
        """GET /board?projectKeyOrId={key}"""
        result = self.http.request(
            "GET", "/board", api=AGILE_API, params={"projectKeyOrId": project_key},
        )
        if not result.ok:
            return result  # type: ignore[return-value]

        response = result.value
        if response.status != 200:
            logger.warning("보드 조회 실패: project=%s, HTTP %d", project_key, response.status)
            return _status_failure(response, f"Board lookup for {project_key}")

        boards = [
            Board(id=item.get("id"), name=item.get("name", ""))
            for item in response.body_dict().get("values") or []
        ]
        logger.info("보드 %d개 조회됨 (project=%s)", len(boards), project_key)
        return Result.success(boards)

    def get_active_sprints(self, board_id: int) -> Result[list[Sprint]]:
        """GET /board/{id}/sprint?state=active"""
        result = self.http.request(
            "GET", f"/board/{board_id}/sprint", api=AGILE_API, params={"state": "active"},
        )
        if not result.ok:
            return result  # type: ignore[return-value]

        response = result.value
        if response.status != 200:
            logger.warning("스프린트 조회 실패: board=%s, HTTP %d", board_id, response.status)
            return _status_failure(response, f"Sprint lookup for board {board_id}")

        sprints = [Sprint.from_api(item) for item in response.body_dict().get("values") or []]
        logger.info("  board=%s → 활성 스프린트 %d개", board_id, len(sprints))
        return Result.success(sprints)

    def add_issue_to_sprint(self, sprint_id: int, issue_key: str) -> bool:
        """POST /sprint/{id}/issue. 성공 판정은 HTTP 204 뿐입니다."""
        result = self.http.request(
            "POST", f"/sprint/{sprint_id}/issue", api=AGILE_API, json={"issues": [issue_key]},
        )
        if not result.ok:
            logger.warning("스프린트 추가 요청 실패: %s", result.error.message)
            return False
        added = result.value.status == 204
        if added:
            logger.info("✅ %s → 스프린트 %s 추가 완료", issue_key, sprint_id)
        else:
            logger.warning("스프린트 추가 실패: %s → %s (HTTP %d)", issue_key, sprint_id, result.value.status)
        return added
