import re
from dataclasses import dataclass, field
from typing import Any

_TICKET_ID_PATTERN = re.compile(r"^([A-Z][A-Z0-9]*)-(\d+)$")


@dataclass(frozen=True)
class JiraConfig:
    """Jira 연결 설정 (호출 1회 동안 불변)"""
    base_url: str
    username: str
    api_token: str
    default_project: str | None = None
    default_issue_type: str = "Task"
    debug: bool = False
    timeout_seconds: float = 30.0

    def browse_url(self, key: str) -> str:
        return f"{self.base_url.rstrip('/')}/browse/{key}"


@dataclass(frozen=True)
class JiraResponse:
    """JSON 본문이 디코딩된 HTTP 응답"""
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    reason: str = ""

    def body_dict(self) -> dict[str, Any]:
        return self.body if isinstance(self.body, dict) else {}


@dataclass(frozen=True)
class Board:
    id: int
    name: str = ""


@dataclass(frozen=True)
class Sprint:
    """Jira 스프린트 엔티티"""
    id: int
    name: str = ""
    end_date: str | None = None   # endDate (ISO 8601)
    state: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Sprint":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            end_date=data.get("endDate"),
            state=data.get("state"),
        )


@dataclass(frozen=True)
class TicketId:
    project: str
    number: str
    full: str


def parse_ticket_id(ticket_id: str | None) -> TicketId | None:
    """
    이슈 키를 파싱합니다 (예: "proj-123" → PROJ-123).

    대소문자를 구분하지 않으며 프로젝트 프리픽스는 대문자로 정규화됩니다.
    형식이 맞지 않으면 None을 반환합니다.
    """
    if not ticket_id or not ticket_id.strip():
        return None
    match = _TICKET_ID_PATTERN.match(ticket_id.strip().upper())
    if not match:
        return None
    project, number = match.groups()
    return TicketId(project=project, number=number, full=f"{project}-{number}")


@dataclass(frozen=True)
class CreatedIssue:
    """이슈 생성 API 응답"""
    key: str
    id: str
    url: str = ""


@dataclass(frozen=True)
class JiraTicket:
    """GET /issue/{key} 응답을 표시용으로 요약한 엔티티"""
    key: str
    summary: str
    status: str | None
    assignee: str
    reporter: str | None
    priority: str | None
    issuetype: str | None
    created: str | None = None
    updated: str | None = None
    url: str = ""
