import logging
from datetime import date

from workbench.application.ports.jira_port import JiraPort
from workbench.application.services.sprint_resolver import SprintResolver, build_sprint_jql
from workbench.configuration.settings import JiraSettings
from workbench.domain.result import ErrorKind, Result
from workbench.domain.story import SprintInfo

logger = logging.getLogger(__name__)

SPRINT_TICKET_FIELDS = ["key", "summary", "status"]
SPRINT_TICKET_LIMIT = 10


def days_remaining(end_date: str | None, today: date | None = None) -> int | None:
    """스프린트 종료일까지 남은 일수 (음수 없음). 종료일을 알 수 없으면 None."""
    if not end_date:
        return None
    try:
        end = date.fromisoformat(end_date[:10])
    except ValueError:
        logger.warning("스프린트 종료일 파싱 실패: %s", end_date)
        return None
    return max((end - (today or date.today())).days, 0)


def format_ticket_line(issue: dict) -> str:
    fields = issue.get("fields") or {}
    status = fields.get("status")
    if isinstance(status, dict):
        status = status.get("name")
    status = status or "Unknown"
    return f"{issue.get('key')}: {fields.get('summary', '')} [{status}]"


class GetSprintInfoUseCase:
    """기본 프로젝트의 현재 스프린트와 내게 할당된 티켓을 조회하는 Use Case"""

    def __init__(self, jira_port: JiraPort, sprint_resolver: SprintResolver, jira_settings: JiraSettings):
        self.jira_port = jira_port
        self.sprint_resolver = sprint_resolver
        self.jira = jira_settings

    def execute(self) -> Result[SprintInfo | None]:
        logger.info("🔍 GetSprintInfoUseCase 실행 시작")
        if not self.jira.default_project:
            return Result.failure(
                ErrorKind.CONFIG,
                "Missing required Jira configuration: default_project",
                {"missing_fields": ["default_project"]},
            )

        resolved = self.sprint_resolver.resolve(self.jira.default_project, self.jira.fallback_board_ids)
        if not resolved.ok:
            return resolved  # type: ignore[return-value]
        sprint = resolved.value
        if sprint is None:
            return Result.success(None)

        jql = build_sprint_jql(
            sprint.id,
            self.jira.sprint_exclude_statuses,
            self.jira.sprint_show_done_tickets,
        )
        logger.info("생성된 JQL 쿼리: %s", jql)

        search = self.jira_port.search(jql, SPRINT_TICKET_FIELDS, SPRINT_TICKET_LIMIT)
        if search.ok:
            tickets = tuple(format_ticket_line(issue) for issue in search.value or [])
        else:
            logger.warning("스프린트 티켓 조회 실패: %s", search.error.message)
            tickets = ()

        logger.info("✅ 스프린트 조회 완료: %s (티켓 %d개)", sprint.name, len(tickets))
        return Result.success(SprintInfo(
            id=sprint.id,
            name=sprint.name,
            days_remaining=days_remaining(sprint.end_date),
            assigned_tickets=tickets,
            jql=jql,
        ))
