from typing import Any, Protocol

from workbench.domain.jira import Board, CreatedIssue, JiraTicket, Sprint
from workbench.domain.result import Result


class JiraPort(Protocol):
    """Jira Core REST API (/rest/api/3)와의 계약을 정의하는 Port"""

    def get_myself(self) -> Result[dict]:
        """현재 인증된 사용자 정보를 조회합니다."""
        ...

    def get_issue(self, key: str) -> Result[JiraTicket]:
        """이슈 키로 이슈를 조회합니다."""
        ...

    def create_issue(self, issue_data: dict[str, Any]) -> Result[CreatedIssue]:
        """이슈를 생성합니다. customfield_* 값은 자동으로 포맷됩니다."""
        ...

    def search(self, jql: str, fields: list[str], max_results: int = 50) -> Result[list[dict]]:
        """JQL 쿼리로 이슈를 검색합니다."""
        ...


class AgilePort(Protocol):
    """Jira Agile REST API (/rest/agile/1.0)와의 계약을 정의하는 Port"""

    def list_boards(self, project_key: str) -> Result[list[Board]]:
        """프로젝트에 속한 보드 목록을 조회합니다."""
        ...

    def get_active_sprints(self, board_id: int) -> Result[list[Sprint]]:
        """보드의 활성(active) 스프린트 목록을 조회합니다."""
        ...

    def add_issue_to_sprint(self, sprint_id: int, issue_key: str) -> bool:
        """이슈를 스프린트에 추가합니다. HTTP 204일 때만 True."""
        ...
