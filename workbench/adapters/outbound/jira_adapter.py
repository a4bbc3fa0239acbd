import json
import logging
from typing import Any

from workbench.adapters.outbound.jira_http_client import JiraHttpClient
from workbench.domain.custom_fields import format_issue_fields
from workbench.domain.jira import CreatedIssue, JiraResponse, JiraTicket, parse_ticket_id
from workbench.domain.result import ErrorKind, Result

logger = logging.getLogger(__name__)

AUTH_FAILED_MESSAGE = "Authentication failed. Check your Jira credentials."

# GET /issue/{key} 응답에서 표시용으로 남길 필드
_TICKET_FIELDS = (
    "summary", "description", "status", "assignee", "reporter",
    "priority", "issuetype", "created", "updated",
)


def _error_detail(body: Any, *, prefer: str = "errorMessages") -> str | None:
    """Jira 에러 응답 본문(errorMessages / errors)에서 메시지를 추출합니다."""
    if not isinstance(body, dict):
        return None
    raw_messages = body.get("errorMessages") or []
    if not isinstance(raw_messages, list):
        raw_messages = [raw_messages]
    messages = [str(m) for m in raw_messages]
    errors = body.get("errors") or {}
    from_messages = "; ".join(messages) if messages else None
    from_errors = (
        "; ".join(f"{field}: {msg}" for field, msg in errors.items())
        if isinstance(errors, dict) and errors else None
    )
    if prefer == "errors":
        return from_errors or from_messages
    return from_messages or from_errors


def classify_create_response(response: JiraResponse, base_url: str = "") -> Result[CreatedIssue]:
    """
    POST /issue 응답을 분류합니다.

    - 201: 성공 (key / id 추출)
    - 400: VALIDATION (errors 또는 errorMessages로 메시지 구성, 본문은 context에 보존)
    - 401: AUTH (본문 파싱 없음)
    - 그 외: EXTERNAL_API
    """
    status = response.status
    body = response.body_dict()

    if status == 201:
        key = str(body.get("key", ""))
        url = f"{base_url.rstrip('/')}/browse/{key}" if base_url and key else ""
        return Result.success(CreatedIssue(key=key, id=str(body.get("id", "")), url=url))

    if status == 400:
        detail = _error_detail(response.body, prefer="errors") or "Unknown validation error"
        return Result.failure(
            ErrorKind.VALIDATION,
            f"Invalid issue data: {detail}",
            {"status": status, "body": response.body},
        )

    if status == 401:
        return Result.failure(ErrorKind.AUTH, AUTH_FAILED_MESSAGE, {"status": status})

    detail = _error_detail(response.body) or response.reason or f"HTTP {status}"
    return Result.failure(
        ErrorKind.EXTERNAL_API,
        f"Failed to create issue: {detail}",
        {"status": status, "body": response.body},
    )


class JiraAdapter:
    """Jira Core REST API와 통신하는 Outbound Adapter"""

    def __init__(self, http: JiraHttpClient):
        self.http = http
        self.base_url = http.config.base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def get_myself(self) -> Result[dict]:
        """GET /myself: 인증 확인 및 사용자 정보 조회"""
        return self.http.request("GET", "/myself").then(
            lambda response: self._expect(response, 200, context_msg="사용자 정보 조회")
        )

    def get_issue(self, key: str) -> Result[JiraTicket]:
        """이슈 키로 이슈를 조회합니다."""
        parsed = parse_ticket_id(key)
        if parsed is None:
            return Result.failure(
                ErrorKind.VALIDATION,
                f"Invalid ticket ID format: {key}. Expected format: PROJ-1234",
                {"input": key},
            )

        logger.info("🔍 이슈 조회: %s", parsed.full)
        return self.http.request("GET", f"/issue/{parsed.full}").then(
            lambda response: self._expect(
                response,
                200,
                custom_errors={404: f"Ticket {parsed.full} not found"},
                context_msg="이슈 조회",
            )
        ).map(self._parse_issue)

    def create_issue(self, issue_data: dict[str, Any]) -> Result[CreatedIssue]:
        """
        이슈를 생성합니다.

        fields 안의 customfield_* 값은 전송 전에 커스텀 필드 포맷터를 거칩니다.
        나머지 표준 필드는 그대로 전송됩니다.
        """
        fields = issue_data.get("fields")
        payload = dict(issue_data)
        if fields:
            payload["fields"] = format_issue_fields(fields)

        logger.info("🌐 Jira 이슈 생성 API 호출 시작")
        logger.info("프로젝트: %s", (payload.get("fields") or {}).get("project"))
        logger.info("요약: %s", (payload.get("fields") or {}).get("summary"))

        result = self.http.request("POST", "/issue", json=payload).then(
            lambda response: classify_create_response(response, self.base_url)
        )
        if result.ok:
            logger.info("✅ Jira 이슈 생성 성공: key=%s, id=%s", result.value.key, result.value.id)
        else:
            logger.error("❌ Jira 이슈 생성 실패: %s", result.error.message)
        return result

    def search(self, jql: str, fields: list[str], max_results: int = 50) -> Result[list[dict]]:
        """POST /search/jql 로 이슈를 검색합니다."""
        logger.info("JQL: %s", jql)
        payload = {"jql": jql, "fields": fields, "maxResults": max_results}
        return self.http.request("POST", "/search/jql", json=payload).then(
            lambda response: self._expect(
                response,
                200,
                custom_errors={400: "Invalid JQL query: "},
                context_msg="JQL 검색",
            )
        ).map(lambda body: list(body.get("issues") or []))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _expect(
        self,
        response: JiraResponse,
        expected: int,
        *,
        custom_errors: dict[int, str] | None = None,
        context_msg: str = "Jira API",
    ) -> Result[dict]:
        """기대한 상태 코드면 본문을, 아니면 상태 코드별 실패를 반환합니다."""
        if response.status == expected:
            return Result.success(response.body_dict())

        status = response.status
        logger.error("❌ %s 실패: HTTP %d", context_msg, status)
        logger.error("응답 본문: %s", json.dumps(response.body, ensure_ascii=False)[:500])

        detail = _error_detail(response.body) or response.reason or f"HTTP {status}"
        context = {"status": status, "body": response.body}

        if custom_errors and status in custom_errors:
            msg = custom_errors[status]
            if msg.endswith(": "):
                msg = f"{msg}{detail}"
            kind = {
                400: ErrorKind.VALIDATION,
                401: ErrorKind.AUTH,
                404: ErrorKind.NOT_FOUND,
            }.get(status, ErrorKind.EXTERNAL_API)
            return Result.failure(kind, msg, context)
        if status == 401:
            return Result.failure(ErrorKind.AUTH, AUTH_FAILED_MESSAGE, context)
        if status == 403:
            return Result.failure(ErrorKind.AUTH, "Jira access denied (HTTP 403)", context)
        if status == 404:
            return Result.failure(ErrorKind.NOT_FOUND, f"Jira resource not found: {detail}", context)
        return Result.failure(ErrorKind.EXTERNAL_API, f"Jira API error {status}: {detail}", context)

    def _parse_issue(self, issue_data: dict[str, Any]) -> JiraTicket:
        """API 응답을 JiraTicket 엔티티로 파싱합니다."""
        fields = {k: v for k, v in (issue_data.get("fields") or {}).items() if k in _TICKET_FIELDS}

        def _name(field: str, attr: str = "name") -> str | None:
            value = fields.get(field)
            return value.get(attr) if isinstance(value, dict) else None

        key = issue_data.get("key", "")
        return JiraTicket(
            key=key,
            summary=fields.get("summary", ""),
            status=_name("status"),
            assignee=_name("assignee", "displayName") or "Unassigned",
            reporter=_name("reporter", "displayName"),
            priority=_name("priority"),
            issuetype=_name("issuetype"),
            created=fields.get("created"),
            updated=fields.get("updated"),
            url=f"{self.base_url}/browse/{key}" if key else "",
        )
