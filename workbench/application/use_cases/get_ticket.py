import logging

from workbench.application.ports.jira_port import JiraPort
from workbench.domain.jira import JiraTicket
from workbench.domain.result import Result

logger = logging.getLogger(__name__)


class GetTicketUseCase:
    """특정 Jira 이슈를 key(ID)로 조회하는 Use Case"""

    def __init__(self, jira_port: JiraPort):
        self.jira_port = jira_port

    def execute(self, key: str) -> Result[JiraTicket]:
        """
        Jira 이슈를 key로 조회합니다.

        Args:
            key: Jira 이슈 키 (예: "proj-123", 대소문자 무관)

        Returns:
            JiraTicket 또는 실패 결과 (형식 오류 / 없음 / 인증 실패)
        """
        logger.info("🔍 GetTicketUseCase 실행: %s", key)
        result = self.jira_port.get_issue(key)
        if result.ok:
            logger.info("✅ 이슈 조회 완료: %s - %s", result.value.key, result.value.summary)
        return result
