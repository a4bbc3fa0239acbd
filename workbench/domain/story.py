from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from workbench.domain.jira import CreatedIssue, Sprint


class StoryMode(Enum):
    CREATED = "created"
    DRY_RUN = "dry-run"
    AI_ONLY = "ai-only"


class SprintStrategy(Enum):
    PROJECT_WIDE = "project-wide"
    FALLBACK_BOARDS = "fallback-boards"
    NONE = "none"


@dataclass(frozen=True)
class TicketContent:
    """AI 보강 전후로 주고받는 제목/설명 쌍"""
    title: str
    description: str = ""


@dataclass(frozen=True)
class StoryRequest:
    """quick-story 명령 입력"""
    summary: str | None = None
    description: str = ""
    file_path: str | None = None
    ai: bool = False
    no_ai: bool = False
    ai_only: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class SprintSearch:
    """스프린트 탐색 1회의 결과. sprints가 비어 있으면 '활성 스프린트 없음'."""
    sprints: tuple[Sprint, ...] = ()
    board_count: int = 0
    strategy: SprintStrategy = SprintStrategy.NONE

    @property
    def found(self) -> bool:
        return bool(self.sprints)


@dataclass(frozen=True)
class SprintAttachment:
    """이슈 생성 후 스프린트 추가 시도 결과 (실패해도 전체 결과는 성공)"""
    sprint: Sprint
    added: bool


@dataclass(frozen=True)
class SprintInfo:
    id: int
    name: str
    days_remaining: int | None
    assigned_tickets: tuple[str, ...]
    jql: str


@dataclass(frozen=True)
class StoryOutcome:
    """CreateStoryUseCase의 성공 결과"""
    mode: StoryMode
    content: TicketContent
    ai_enhanced: bool = False
    issue: CreatedIssue | None = None
    sprint: Sprint | None = None
    sprint_attachment: SprintAttachment | None = None
    issue_data: dict[str, Any] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def sprint_attach_failed(self) -> bool:
        return self.sprint_attachment is not None and not self.sprint_attachment.added
