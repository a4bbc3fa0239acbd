import base64
import logging
from typing import Any

import httpx

from workbench.domain.jira import JiraConfig, JiraResponse
from workbench.domain.result import ErrorKind, Result

logger = logging.getLogger(__name__)

CORE_API = "/rest/api/3"
AGILE_API = "/rest/agile/1.0"

# 디버그 트레이스에서 응답 본문을 그대로 출력하는 최대 길이
_MAX_TRACE_BODY = 1000


def make_auth_header(username: str | None, api_token: str | None) -> Result[str]:
    """username:token을 base64로 인코딩한 Basic Auth 헤더를 생성합니다."""
    if not username or not username.strip() or not api_token or not api_token.strip():
        return Result.failure(
            ErrorKind.CONFIG,
            "Username and API token are required",
            {"username": username, "api_token_set": bool(api_token)},
        )
    encoded = base64.b64encode(f"{username}:{api_token}".encode("utf-8")).decode("ascii")
    return Result.success(f"Basic {encoded}")


def _truncate(text: str, limit: int = _MAX_TRACE_BODY) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text)}자)"


class JiraHttpClient:
    """
    Jira REST API 공통 요청 클라이언트.

    non-2xx 응답도 실패로 취급하지 않고 JiraResponse로 그대로 반환합니다.
    상태 코드 분류는 호출하는 어댑터의 책임입니다. 전송 계층 오류만
    NETWORK / TIMEOUT 실패로 변환됩니다.
    """

    def __init__(self, config: JiraConfig, transport: httpx.BaseTransport | None = None):
        self.config = config
        self._transport = transport

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        api: str = CORE_API,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Result[JiraResponse]:
        auth = make_auth_header(self.config.username, self.config.api_token)
        if not auth.ok:
            return auth  # type: ignore[return-value]

        method = method.upper()
        url = f"{self.config.base_url.rstrip('/')}{api}{path}"
        headers = {
            "Authorization": auth.value,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        if self.config.debug:
            self._trace_request(method, url, params, json)

        try:
            with self._client() as client:
                response = client.request(method, url, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("❌ Jira 요청 시간 초과: %s %s", method, url)
            return Result.failure(
                ErrorKind.TIMEOUT,
                f"Jira request timed out after {self.config.timeout_seconds}s: {method} {url}",
                {"url": url, "exception": type(e).__name__},
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.error("❌ 잘못된 Jira URL: %s", url)
            return Result.failure(
                ErrorKind.CONFIG,
                f"Invalid Jira base URL: {self.config.base_url}",
                {"url": url, "exception": str(e)},
            )
        except httpx.HTTPError as e:
            logger.error("❌ 네트워크 오류: %s", str(e))
            return Result.failure(
                ErrorKind.NETWORK,
                f"Could not connect to Jira server: {self.config.base_url}",
                {"url": url, "exception": str(e) or type(e).__name__},
            )
        except (TypeError, ValueError) as e:
            # 요청 본문 JSON 인코딩 실패 (직렬화할 수 없는 값)
            logger.error("❌ 요청 본문 인코딩 실패: %s %s - %s", method, url, e)
            return Result.failure(
                ErrorKind.EXTERNAL_API,
                f"Could not encode Jira request body: {e}",
                {"url": url, "exception": str(e)},
            )

        parsed = JiraResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=self._parse_body(response),
            reason=response.reason_phrase,
        )

        if self.config.debug:
            self._trace_response(parsed)

        return Result.success(parsed)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.Client:
        """timeout이 설정된 httpx.Client를 반환합니다."""
        return httpx.Client(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # HTML 에러 페이지 등 JSON이 아닌 본문은 텍스트로 유지
            return response.text

    @staticmethod
    def _trace_request(method: str, url: str, params: dict | None, body: Any) -> None:
        logger.debug("[JIRA-DEBUG] HTTP %s %s", method, url)
        if params:
            logger.debug("[JIRA-DEBUG] Query params: %s", params)
        if body is not None:
            logger.debug("[JIRA-DEBUG] Request body: %s", _truncate(str(body)))

    @staticmethod
    def _trace_response(response: JiraResponse) -> None:
        logger.debug("[JIRA-DEBUG] Response status: %d", response.status)
        body = response.body
        if body is None:
            return
        if isinstance(body, dict):
            logger.debug("[JIRA-DEBUG] Response body keys: %s", list(body.keys()))
            if "issues" in body:
                logger.debug("[JIRA-DEBUG] Issues count: %d", len(body.get("issues") or []))
        logger.debug("[JIRA-DEBUG] Response body: %s", _truncate(str(body)))
