import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from workbench.application.ports.content_enhancer_port import ContentEnhancerPort
from workbench.application.ports.jira_port import JiraPort
from workbench.application.services.adf_renderer import AdfRenderer
from workbench.application.services.sprint_resolver import SprintResolver
from workbench.configuration.settings import JiraSettings
from workbench.domain.custom_fields import prepare_custom_fields
from workbench.domain.jira import CreatedIssue, Sprint
from workbench.domain.result import ErrorKind, Result, chain, safely, validate_required
from workbench.domain.story import (
    SprintAttachment,
    StoryMode,
    StoryOutcome,
    StoryRequest,
    TicketContent,
)

logger = logging.getLogger(__name__)


def load_story_from_file(file_path: str) -> Result[TicketContent]:
    """
    파일에서 스토리를 읽습니다.

    첫 줄은 제목, 나머지 줄은 설명(마크다운)으로 사용합니다.
    """
    path = Path(file_path).expanduser()
    if not path.is_file():
        return Result.failure(
            ErrorKind.FILE_IO,
            f"File not found: {file_path}",
            {"file_path": str(path)},
        )
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Result.failure(
            ErrorKind.FILE_IO,
            f"Failed to read file: {file_path}",
            {"file_path": str(path), "exception": str(e)},
        )

    lines = text.splitlines()
    title = lines[0].strip() if lines else ""
    description = "\n".join(lines[1:]).strip("\n")
    logger.info("📄 파일에서 스토리 로드: %s (%d줄)", path, len(lines))
    return Result.success(TicketContent(title=title, description=description))


def build_issue_data(
    content: TicketContent,
    jira: JiraSettings,
    adf_renderer: AdfRenderer,
    account_id: str | None = None,
) -> dict[str, Any]:
    """POST /issue 요청 본문을 조립합니다."""
    fields: dict[str, Any] = {
        "project": {"key": jira.default_project},
        "summary": content.title,
        "issuetype": {"name": jira.default_issue_type},
        "description": adf_renderer.to_adf(content.description),
    }

    if account_id:
        fields["assignee"] = {"accountId": account_id}

    if jira.default_fix_version_id:
        fields["fixVersions"] = [{"id": str(jira.default_fix_version_id)}]

    custom_fields = dict(jira.custom_fields)
    # 사용자가 스토리 포인트 필드를 이미 지정했다면 기본값을 넣지 않음
    if (
        jira.default_story_points is not None
        and jira.story_points_field
        and not any("story" in str(key).lower() for key in custom_fields)
    ):
        custom_fields[jira.story_points_field] = jira.default_story_points

    fields.update(prepare_custom_fields(custom_fields, jira.field_mappings))
    return {"fields": fields}


@dataclass(frozen=True)
class _StoryDraft:
    """파이프라인 단계 사이에서 전달되는 중간 상태"""
    request: StoryRequest
    content: TicketContent = TicketContent(title="")
    ai_enhanced: bool = False
    sprint: Sprint | None = None
    issue_data: dict[str, Any] = field(default_factory=dict)
    issue: CreatedIssue | None = None
    sprint_attachment: SprintAttachment | None = None
    warnings: tuple[str, ...] = ()

    def warn(self, message: str) -> "_StoryDraft":
        logger.info("경고 기록: %s", message)
        return replace(self, warnings=self.warnings + (message,))


class CreateStoryUseCase:
    """
    quick-story 오케스트레이터.

    입력 → 검증 → AI 보강 → [ai-only 종료] → Jira 설정 확인
    → 스프린트 탐색 → [dry-run 종료] → 요청 본문 조립 → 이슈 생성
    → 스프린트 추가 순으로 실행합니다.

    치명적인 단계의 실패는 그대로 반환됩니다. AI 보강 실패, 스프린트 탐색 실패,
    스프린트 추가 실패는 경고로만 기록되고 파이프라인은 계속 진행됩니다.
    """

    def __init__(
        self,
        jira_port: JiraPort,
        sprint_resolver: SprintResolver,
        adf_renderer: AdfRenderer,
        jira_settings: JiraSettings,
        enhancer: ContentEnhancerPort | None = None,
        ai_enabled_by_default: bool = False,
    ):
        self.jira_port = jira_port
        self.sprint_resolver = sprint_resolver
        self.adf_renderer = adf_renderer
        self.jira = jira_settings
        self.enhancer = enhancer
        self.ai_enabled_by_default = ai_enabled_by_default

    def execute(self, request: StoryRequest) -> Result[StoryOutcome]:
        logger.info("🚀 CreateStoryUseCase 실행 시작")

        prepared = chain(
            _StoryDraft(request=request),
            self._read_input,
            self._validate,
            self._enhance,
        )
        if not prepared.ok:
            return prepared  # type: ignore[return-value]
        if request.ai_only:
            logger.info("ai-only 모드: Jira 호출 없이 종료")
            return Result.success(self._outcome(StoryMode.AI_ONLY, prepared.value))

        planned = chain(prepared.value, self._check_jira_config, self._find_sprint)
        if not planned.ok:
            return planned  # type: ignore[return-value]
        if request.dry_run:
            logger.info("dry-run 모드: 이슈를 생성하지 않음")
            draft = replace(
                planned.value,
                issue_data=build_issue_data(planned.value.content, self.jira, self.adf_renderer),
            )
            return Result.success(self._outcome(StoryMode.DRY_RUN, draft))

        return chain(
            planned.value,
            self._build_payload,
            self._create_issue,
            self._attach_to_sprint,
        ).map(lambda draft: self._outcome(StoryMode.CREATED, draft))

    def ai_enabled(self, request: StoryRequest) -> bool:
        if request.no_ai:
            return False
        return bool(request.ai or request.ai_only or self.ai_enabled_by_default)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _read_input(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        request = draft.request
        if request.file_path:
            loaded = load_story_from_file(request.file_path)
        else:
            loaded = Result.success(TicketContent(
                title=(request.summary or "").strip(),
                description=request.description or "",
            ))
        return loaded.map(lambda content: replace(draft, content=content))

    def _validate(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        return validate_required("Summary", draft.content.title).map(lambda _: draft)

    def _enhance(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        if not self.ai_enabled(draft.request):
            return Result.success(draft)
        if self.enhancer is None:
            return Result.success(draft.warn("AI enhancement requested but ai.gateway_url is not configured"))

        enhancer = self.enhancer
        result = safely(lambda: enhancer.enhance(draft.content)).then(lambda inner: inner)
        if not result.ok:
            return Result.success(draft.warn(f"AI enhancement failed, using original content: {result.error.message}"))

        enhanced = result.value
        return Result.success(replace(
            draft,
            content=enhanced,
            ai_enhanced=enhanced != draft.content,
        ))

    def _check_jira_config(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        missing = self.jira.missing_connection_fields()
        if missing:
            return Result.failure(
                ErrorKind.CONFIG,
                f"Missing required Jira configuration: {', '.join(missing)}",
                {"missing_fields": missing},
            )
        return Result.success(draft)

    def _find_sprint(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        if not self.jira.auto_add_to_sprint:
            return Result.success(draft)

        result = self.sprint_resolver.resolve(self.jira.default_project, self.jira.fallback_board_ids)
        if not result.ok:
            return Result.success(draft.warn(f"Sprint detection failed: {result.error.message}"))
        if result.value is None:
            logger.info("활성 스프린트 없음 → 스프린트 추가 생략")
            return Result.success(draft)

        logger.info("🏃 대상 스프린트: %s (id=%s)", result.value.name, result.value.id)
        return Result.success(replace(draft, sprint=result.value))

    def _build_payload(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        account_id = None
        if self.jira.auto_assign_self:
            myself = self.jira_port.get_myself()
            if myself.ok:
                account_id = (myself.value or {}).get("accountId")
            else:
                draft = draft.warn(f"Could not look up current user, ticket will be unassigned: {myself.error.message}")

        issue_data = build_issue_data(draft.content, self.jira, self.adf_renderer, account_id)
        logger.debug("이슈 요청 본문: %s", issue_data)
        return Result.success(replace(draft, issue_data=issue_data))

    def _create_issue(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        return self.jira_port.create_issue(draft.issue_data).map(
            lambda issue: replace(draft, issue=issue)
        )

    def _attach_to_sprint(self, draft: _StoryDraft) -> Result[_StoryDraft]:
        if draft.sprint is None or draft.issue is None:
            return Result.success(draft)

        added = self.sprint_resolver.attach_issue(draft.sprint.id, draft.issue.key)
        attachment = SprintAttachment(sprint=draft.sprint, added=added)
        if not added:
            draft = draft.warn(f"Created {draft.issue.key} but could not add it to sprint {draft.sprint.name}")
        return Result.success(replace(draft, sprint_attachment=attachment))

    @staticmethod
    def _outcome(mode: StoryMode, draft: _StoryDraft) -> StoryOutcome:
        return StoryOutcome(
            mode=mode,
            content=draft.content,
            ai_enhanced=draft.ai_enhanced,
            issue=draft.issue,
            sprint=draft.sprint,
            sprint_attachment=draft.sprint_attachment,
            issue_data=draft.issue_data,
            warnings=draft.warnings,
        )
