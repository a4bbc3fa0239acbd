import logging

from workbench.application.ports.jira_port import JiraPort
from workbench.application.services.sprint_resolver import SprintResolver
from workbench.configuration.settings import CREDENTIAL_FIELDS, JiraSettings
from workbench.domain.jira_check import CheckStatus, CheckStep, ConnectionReport
from workbench.domain.result import ErrorKind, Result

logger = logging.getLogger(__name__)

SPRINT_TROUBLESHOOTING = (
    "Troubleshooting:",
    "  - Verify the project key is correct",
    "  - Check that your user can access the project boards",
    "  - Consider setting jira.fallback_board_ids in the config",
    "  - Run with --debug-sprint for detailed logging",
)


class CheckJiraConnectionUseCase:
    """
    Jira 설정과 연결 상태를 단계별로 점검합니다.

    1. 설정 확인 (base_url / username / api_token)
    2. 연결 테스트 (GET /myself), 설정이 유효할 때만
    3. 사용자 정보, 연결됐을 때만
    4. 테스트 티켓 조회, 티켓 키가 주어졌을 때만
    5. 스프린트 연동 확인, default_project가 있을 때만

    각 단계의 실패는 보고서에 오류 / 경고로 기록되며 Use Case 자체는
    항상 성공 결과를 반환합니다.
    """

    def __init__(self, jira_port: JiraPort, sprint_resolver: SprintResolver, jira_settings: JiraSettings):
        self.jira_port = jira_port
        self.sprint_resolver = sprint_resolver
        self.jira = jira_settings

    def execute(self, ticket_key: str | None = None) -> Result[ConnectionReport]:
        logger.info("🌐 Jira 연결 점검 시작 (테스트 티켓: %s)", ticket_key or "-")
        steps: list[CheckStep] = []
        errors: list[str] = []
        warnings: list[str] = []
        failure_kind: ErrorKind | None = None

        def fail(message: str, kind: ErrorKind) -> None:
            nonlocal failure_kind
            errors.append(message)
            if failure_kind is None:
                failure_kind = kind

        # 1. 설정 확인
        config_step = self._check_config()
        steps.append(config_step)
        if not config_step.passed:
            missing = self.jira.missing_connection_fields(CREDENTIAL_FIELDS)
            fail(f"Missing required configuration: {', '.join(missing)}", ErrorKind.CONFIG)

        # 2. 연결 테스트
        user: dict | None = None
        if config_step.passed:
            myself = self.jira_port.get_myself()
            if myself.ok:
                user = myself.value or {}
                steps.append(CheckStep("Connection Test", CheckStatus.OK, (
                    f"Successfully connected as: {user.get('displayName', 'Unknown')}",
                )))
            else:
                steps.append(CheckStep("Connection Test", CheckStatus.ERROR, (myself.error.message,)))
                fail(myself.error.message, myself.error.kind)

        connected = user is not None

        # 3. 사용자 정보
        if connected:
            steps.append(self._user_info(user))
            if not steps[-1].passed:
                warnings.append("User information not available")

        # 4. 테스트 티켓 조회
        if connected and ticket_key:
            ticket = self.jira_port.get_issue(ticket_key)
            title = f"Test Ticket Fetch ({ticket_key})"
            if ticket.ok:
                t = ticket.value
                steps.append(CheckStep(title, CheckStatus.OK, (
                    "Ticket fetched successfully",
                    f"{t.key}: {t.summary}",
                    f"Status: {t.status or 'Unknown'}",
                    f"Type: {t.issuetype or 'Unknown'}",
                    f"Assignee: {t.assignee}",
                )))
            else:
                steps.append(CheckStep(title, CheckStatus.ERROR, (
                    f"Failed to fetch ticket: {ticket.error.message}",
                )))
                fail(ticket.error.message, ticket.error.kind)

        # 5. 스프린트 연동 확인
        if connected and self.jira.default_project:
            sprint_step = self._check_sprints()
            steps.append(sprint_step)
            if sprint_step.status is CheckStatus.WARN:
                warnings.append(sprint_step.lines[0])

        possible = 3 + (1 if ticket_key else 0) + (1 if self.jira.default_project else 0)
        report = ConnectionReport(
            steps=tuple(steps),
            passed=sum(1 for step in steps if step.passed),
            possible=possible,
            errors=tuple(errors),
            warnings=tuple(warnings),
            failure_kind=failure_kind,
        )
        if report.ok:
            logger.info("✅ Jira 연결 점검 완료: %d/%d", report.passed, report.possible)
        else:
            logger.info("❌ Jira 연결 점검 실패: %s", "; ".join(report.errors))
        return Result.success(report)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_config(self) -> CheckStep:
        missing = self.jira.missing_connection_fields(CREDENTIAL_FIELDS)
        if missing:
            return CheckStep(
                "Configuration Validation",
                CheckStatus.ERROR,
                ("Configuration incomplete", *(f"Missing: {name}" for name in missing)),
            )

        lines = [
            "All required configuration present",
            f"URL: {self.jira.base_url}",
            f"User: {self.jira.username}",
            "Token: *****",
        ]
        if self.jira.default_project:
            lines.append(f"Default Project: {self.jira.default_project}")
        return CheckStep("Configuration Validation", CheckStatus.OK, tuple(lines))

    @staticmethod
    def _user_info(user: dict) -> CheckStep:
        if not user.get("displayName"):
            return CheckStep("User Information", CheckStatus.WARN, ("Could not retrieve user information",))

        lines = [
            f"Connected as: {user['displayName']}",
            f"Email: {user.get('emailAddress') or 'hidden'}",
            f"Account ID: {user.get('accountId') or 'Unknown'}",
        ]
        if user.get("timeZone"):
            lines.append(f"Timezone: {user['timeZone']}")
        return CheckStep("User Information", CheckStatus.OK, tuple(lines))

    def _check_sprints(self) -> CheckStep:
        title = "Sprint Integration Check"
        found = self.sprint_resolver.find_sprints(self.jira.default_project, self.jira.fallback_board_ids)
        if not found.ok:
            return CheckStep(title, CheckStatus.WARN, (
                f"Sprint detection failed: {found.error.message}",
                *SPRINT_TROUBLESHOOTING,
            ))

        search = found.value
        method = f"Detection method: {search.strategy.value} (across {search.board_count} boards)"
        if len(search.sprints) == 1:
            sprint = search.sprints[0]
            return CheckStep(title, CheckStatus.OK, (
                f"Active sprint found: {sprint.name}",
                method,
                f"Sprint ID: {sprint.id}",
                f"Sprint State: {sprint.state or 'unknown'}",
            ))
        if search.sprints:
            return CheckStep(title, CheckStatus.OK, (
                f"Multiple active sprints found ({len(search.sprints)} sprints)",
                method,
                f"Primary sprint: {search.sprints[0].name}",
                "Note: the first sprint is used for new tickets",
            ))
        return CheckStep(title, CheckStatus.WARN, (
            "No active sprint available",
            "New tickets won't be added to a sprint automatically",
        ))
