from dataclasses import dataclass
from enum import Enum

from workbench.domain.result import ErrorKind


class CheckStatus(Enum):
    OK = "OK"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CheckStep:
    """jira-check의 단계 하나 (제목, 판정, 출력할 상세 줄)"""
    title: str
    status: CheckStatus
    lines: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.OK


@dataclass(frozen=True)
class ConnectionReport:
    """
    jira-check 전체 결과.

    errors가 비어 있으면 성공입니다. failure_kind는 첫 번째 오류의 종류로,
    CLI 종료 코드를 정하는 데 사용됩니다.
    """
    steps: tuple[CheckStep, ...]
    passed: int
    possible: int
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    failure_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return not self.errors
