import logging

from jinja2 import BaseLoader, Environment, Undefined

logger = logging.getLogger(__name__)

DEFAULT_AI_PROMPT = (
    "TASK: Rewrite title and description for clarity and professionalism. "
    "OUTPUT: Exactly two lines: Title: [enhanced title] Description: [enhanced description]. "
    "FORBIDDEN: explanations, rationale, technical details, implementation notes, "
    "business impact, examples, or any other text."
)

DEFAULT_MESSAGE_TEMPLATE: tuple[dict[str, str], ...] = (
    {"role": "system", "content": "{{ prompt }}"},
    {"role": "user", "content": "Title: {{ title }}\nDescription: {{ description }}"},
)


class LoggingUndefined(Undefined):
    """미치환 변수 접근 시 경고 로그를 출력합니다."""
    def __str__(self) -> str:
        logger.warning("프롬프트 템플릿 미치환 변수: %s", self._undefined_name)
        return ""


class PromptRenderer:
    """Jinja2 기반 AI 메시지 템플릿 렌더러"""

    def __init__(self, prompt: str | None = None, message_template: list[dict] | None = None):
        self._prompt = prompt or DEFAULT_AI_PROMPT
        self._message_template = list(message_template or DEFAULT_MESSAGE_TEMPLATE)
        self._env = Environment(
            loader=BaseLoader(),
            undefined=LoggingUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render_messages(self, title: str, description: str) -> list[dict[str, str]]:
        """
        메시지 템플릿을 렌더링합니다.

        사용 가능한 변수: prompt, title, description, title_and_description
        """
        variables = {
            "title": title,
            "description": description,
            "title_and_description": f"{title}\n\n{description}".strip(),
        }
        # 프롬프트 자체도 템플릿으로 취급 (title 등을 참조할 수 있음)
        variables["prompt"] = self._env.from_string(self._prompt).render(**variables)

        messages = []
        for entry in self._message_template:
            template = self._env.from_string(str(entry.get("content", "")))
            messages.append({
                "role": str(entry.get("role", "user")),
                "content": template.render(**variables),
            })
        logger.debug("AI 메시지 렌더링 완료: %d개", len(messages))
        return messages
