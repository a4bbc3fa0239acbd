import logging
import re
from typing import Any

import httpx

from workbench.application.services.prompt_renderer import PromptRenderer
from workbench.domain.result import ErrorKind, Result
from workbench.domain.story import TicketContent

logger = logging.getLogger(__name__)

_TITLE_LINE = re.compile(r"^\s*title\s*:\s*(.*)$", re.IGNORECASE)
_DESCRIPTION_LINE = re.compile(r"^\s*description\s*:\s*(.*)$", re.IGNORECASE)


def _completion_text(body: dict[str, Any]) -> str | None:
    """OpenAI / Anthropic 스타일 응답에서 생성 텍스트를 꺼냅니다."""
    choices = body.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0] or {}
        message = first.get("message") or {}
        text = message.get("content") or first.get("text")
        if isinstance(text, str):
            return text
    content = body.get("content")
    if isinstance(content, list) and content and isinstance(content[0], dict):
        text = content[0].get("text")
        if isinstance(text, str):
            return text
    for key in ("completion", "response", "text"):
        if isinstance(body.get(key), str):
            return body[key]
    return None


def parse_title_description(text: str) -> tuple[str | None, str | None]:
    """'Title: ...' / 'Description: ...' 형식의 텍스트를 파싱합니다."""
    title: str | None = None
    description_lines: list[str] | None = None
    for line in text.splitlines():
        if description_lines is None:
            title_match = _TITLE_LINE.match(line)
            if title_match and title is None:
                title = title_match.group(1).strip()
                continue
            desc_match = _DESCRIPTION_LINE.match(line)
            if desc_match:
                description_lines = [desc_match.group(1)]
        else:
            description_lines.append(line)
    description = "\n".join(description_lines).strip() if description_lines is not None else None
    return title, description


def parse_enhancement(body: Any, original: TicketContent) -> TicketContent | None:
    if not isinstance(body, dict):
        return None
    if any(k in body for k in ("enhanced_title", "enhanced_description", "title", "description")):
        return TicketContent(
            title=body.get("enhanced_title") or body.get("title") or original.title,
            description=body.get("enhanced_description") or body.get("description") or original.description,
        )
    text = _completion_text(body)
    if not text:
        return None
    title, description = parse_title_description(text)
    if title is None and description is None:
        return None
    return TicketContent(
        title=title or original.title,
        description=description if description is not None else original.description,
    )


class AIGatewayAdapter:
    """AI 게이트웨이를 통해 티켓 제목/설명을 보강하는 Outbound Adapter"""

    def __init__(
        self,
        gateway_url: str,
        api_key: str | None,
        renderer: PromptRenderer,
        *,
        model: str | None = None,
        max_tokens: int = 1024,
        timeout_ms: int = 5000,
        transport: httpx.BaseTransport | None = None,
    ):
        self.gateway_url = gateway_url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout_ms / 1000
        self._renderer = renderer
        self._transport = transport

    def enhance(self, content: TicketContent) -> Result[TicketContent]:
        payload: dict[str, Any] = {
            "messages": self._renderer.render_messages(content.title, content.description),
            "title": content.title,
            "description": content.description,
            "format": "jira",
            "max_tokens": self.max_tokens,
        }
        if self.model:
            payload["model"] = self.model

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.info("🤖 AI 게이트웨이 호출: %s", self.gateway_url)
        logger.debug("AI 요청 본문: %s", payload)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.gateway_url, json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.warning("AI 게이트웨이 시간 초과 (%.1fs)", self.timeout)
            return Result.failure(ErrorKind.TIMEOUT, "AI gateway timeout, using original content")
        except httpx.HTTPError as e:
            logger.warning("AI 게이트웨이 연결 실패: %s", e)
            return Result.failure(
                ErrorKind.NETWORK,
                f"AI enhancement failed: {e}",
                {"exception": type(e).__name__},
            )

        logger.debug("AI 응답 상태: %d", response.status_code)

        if response.status_code == 429:
            return Result.failure(
                ErrorKind.EXTERNAL_API,
                "AI gateway rate limited, using original content",
                {"status": 429},
            )
        if response.status_code != 200:
            return Result.failure(
                ErrorKind.EXTERNAL_API,
                f"AI gateway returned {response.status_code}: {response.text[:200]}",
                {"status": response.status_code},
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        enhanced = parse_enhancement(body, content)
        if enhanced is None:
            return Result.failure(
                ErrorKind.EXTERNAL_API,
                "AI gateway response could not be parsed",
                {"body": response.text[:500]},
            )

        logger.info("✅ AI 보강 완료 (제목 변경: %s)", enhanced.title != content.title)
        return Result.success(enhanced)
