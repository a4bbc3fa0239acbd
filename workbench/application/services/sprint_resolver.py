import logging
from typing import Iterable, Sequence

from workbench.application.ports.jira_port import AgilePort
from workbench.domain.jira import Sprint
from workbench.domain.result import ErrorKind, Result
from workbench.domain.story import SprintSearch, SprintStrategy

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_STATUSES: tuple[str, ...] = ("Done",)

# 탐색 전체를 중단시키는 실패 종류. 나머지(404, 400 등)는 '데이터 없음'으로 취급합니다.
_ABORTING_KINDS = frozenset({
    ErrorKind.NETWORK,
    ErrorKind.TIMEOUT,
    ErrorKind.AUTH,
    ErrorKind.CONFIG,
})


def dedupe_sprints(sprints: Iterable[Sprint]) -> tuple[Sprint, ...]:
    """스프린트 id 기준 중복 제거. 처음 등장한 순서를 보존합니다."""
    seen: dict[int, Sprint] = {}
    for sprint in sprints:
        if sprint.id not in seen:
            seen[sprint.id] = sprint
    return tuple(seen.values())


def select_sprint(search: SprintSearch) -> Sprint | None:
    """중복 제거 순서상 첫 번째 스프린트를 선택합니다."""
    return search.sprints[0] if search.sprints else None


def build_sprint_jql(
    sprint_id: int,
    exclude_statuses: Sequence[str] | None = DEFAULT_EXCLUDE_STATUSES,
    show_done: bool = False,
) -> str:
    """
    현재 스프린트에서 내게 할당된 티켓을 조회하는 JQL을 생성합니다.

    show_done이 True이거나 제외 상태 목록이 비어 있으면 status 조건을 생략합니다.
    """
    status_filter = ""
    if not show_done and exclude_statuses:
        quoted = ", ".join(f'"{status}"' for status in exclude_statuses)
        status_filter = f" AND status NOT IN ({quoted})"
    return (
        f"assignee = currentUser() AND sprint = {sprint_id}"
        f"{status_filter} ORDER BY priority DESC"
    )


class SprintResolver:
    """
    프로젝트의 현재 활성 스프린트를 탐색합니다.

    탐색 전략 (순서대로 시도):
    1. project-wide: 프로젝트의 모든 보드 → 보드별 활성 스프린트
    2. fallback-boards: 1에서 스프린트가 없을 때만, 설정된 보드 ID 목록 사용

    보드 / 스프린트 조회는 순차적으로 실행됩니다. 결과는 캐시하지 않으며
    호출마다 새로 탐색합니다.
    """

    def __init__(self, agile_port: AgilePort):
        self._agile = agile_port

    def find_sprints(
        self,
        project_key: str | None,
        fallback_board_ids: Sequence[int] | None = None,
    ) -> Result[SprintSearch]:
        logger.debug("--- SPRINT DETECTION ---")
        logger.debug("  Project: %s", project_key)
        logger.debug("  Fallback boards: %s", list(fallback_board_ids or []))

        if project_key:
            project_wide = self._search_project(project_key)
            if not project_wide.ok:
                return project_wide
            if project_wide.value.found:
                logger.info(
                    "스프린트 탐색 성공 (project-wide): %d개, 보드 %d개",
                    len(project_wide.value.sprints), project_wide.value.board_count,
                )
                return project_wide

        if fallback_board_ids:
            logger.info("프로젝트 보드에서 활성 스프린트 없음 → fallback 보드 %s 조회", list(fallback_board_ids))
            fallback = self._collect_sprints(list(fallback_board_ids))
            if not fallback.ok:
                return fallback  # type: ignore[return-value]
            if fallback.value:
                logger.info("스프린트 탐색 성공 (fallback-boards): %d개", len(fallback.value))
                return Result.success(SprintSearch(
                    sprints=fallback.value,
                    board_count=len(fallback_board_ids),
                    strategy=SprintStrategy.FALLBACK_BOARDS,
                ))

        logger.info("활성 스프린트 없음: project=%s", project_key)
        self._log_troubleshooting(fallback_board_ids)
        return Result.success(SprintSearch())

    def resolve(
        self,
        project_key: str | None,
        fallback_board_ids: Sequence[int] | None = None,
    ) -> Result[Sprint | None]:
        """탐색 후 첫 번째 스프린트를 반환합니다. 없으면 성공 + None."""
        return self.find_sprints(project_key, fallback_board_ids).map(select_sprint)

    def attach_issue(self, sprint_id: int, issue_key: str) -> bool:
        return self._agile.add_issue_to_sprint(sprint_id, issue_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _search_project(self, project_key: str) -> Result[SprintSearch]:
        boards_result = self._agile.list_boards(project_key)
        if not boards_result.ok:
            if boards_result.error.kind in _ABORTING_KINDS:
                return boards_result  # type: ignore[return-value]
            logger.warning("보드 목록 조회 실패, 데이터 없음으로 처리: %s", boards_result.error.message)
            return Result.success(SprintSearch())

        boards = boards_result.value or []
        logger.debug("  Boards: %s", [(b.id, b.name) for b in boards])
        if not boards:
            return Result.success(SprintSearch())

        sprints = self._collect_sprints([board.id for board in boards])
        if not sprints.ok:
            return sprints  # type: ignore[return-value]
        return Result.success(SprintSearch(
            sprints=sprints.value,
            board_count=len(boards),
            strategy=SprintStrategy.PROJECT_WIDE if sprints.value else SprintStrategy.NONE,
        ))

    def _collect_sprints(self, board_ids: list[int]) -> Result[tuple[Sprint, ...]]:
        collected: list[Sprint] = []
        for board_id in board_ids:
            result = self._agile.get_active_sprints(board_id)
            if not result.ok:
                if result.error.kind in _ABORTING_KINDS:
                    return result  # type: ignore[return-value]
                logger.warning("board=%s 스프린트 조회 건너뜀: %s", board_id, result.error.message)
                continue
            collected.extend(result.value or [])
        sprints = dedupe_sprints(collected)
        logger.debug("  Sprints (deduped): %s", [(s.id, s.name) for s in sprints])
        return Result.success(sprints)

    @staticmethod
    def _log_troubleshooting(fallback_board_ids: Sequence[int] | None) -> None:
        logger.debug("--- TROUBLESHOOTING ---")
        logger.debug("  - 프로젝트 키가 올바른지 확인하세요")
        logger.debug("  - 사용자가 프로젝트 보드에 접근 권한이 있는지 확인하세요")
        logger.debug("  - 스프린트가 'active' 상태인지 확인하세요 (future/closed 제외)")
        if not fallback_board_ids:
            logger.debug("  - 설정에 jira.fallback_board_ids 를 지정해 보세요")
