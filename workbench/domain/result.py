from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    """모든 컴포넌트가 공유하는 실패 분류"""
    VALIDATION = "validation"
    AUTH = "authentication"
    NETWORK = "network"
    TIMEOUT = "timeout"
    NOT_FOUND = "not-found"
    CONFIG = "configuration"
    EXTERNAL_API = "external-api"
    FILE_IO = "file-io"


EXIT_CODES: dict[str, int] = {
    "success": 0,
    "general-error": 1,
    "misuse": 2,
    "config-error": 3,
    "auth-error": 4,
    "network-error": 5,
    "not-found": 6,
    "file-error": 7,
}

_KIND_TO_EXIT: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "misuse",
    ErrorKind.AUTH: "auth-error",
    ErrorKind.NETWORK: "network-error",
    ErrorKind.TIMEOUT: "network-error",
    ErrorKind.NOT_FOUND: "not-found",
    ErrorKind.CONFIG: "config-error",
    ErrorKind.FILE_IO: "file-error",
}


def exit_code_for(kind: ErrorKind) -> int:
    """ErrorKind를 CLI 종료 코드로 변환합니다. 알 수 없는 종류는 general-error."""
    return EXIT_CODES[_KIND_TO_EXIT.get(kind, "general-error")]


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    파이프라인 단계 사이에서 전달되는 성공/실패 값.

    ``error is None`` 이면 성공입니다. 성공 결과도 ``None`` 값을 가질 수 있습니다
    (예: 활성 스프린트 없음).
    """
    value: T | None = None
    error: Failure | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> "Result[T]":
        return cls(error=Failure(kind=kind, message=message, context=dict(context or {})))

    @property
    def ok(self) -> bool:
        return self.error is None

    def then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """성공이면 다음 단계를 실행하고, 실패면 그대로 전달합니다."""
        if not self.ok:
            return self  # type: ignore[return-value]
        return fn(self.value)  # type: ignore[arg-type]

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if not self.ok:
            return self  # type: ignore[return-value]
        return Result.success(fn(self.value))  # type: ignore[arg-type]

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default  # type: ignore[return-value]


def chain(initial: Any, *steps: Callable[[Any], Result]) -> Result:
    """steps를 순서대로 실행하고 첫 번째 실패에서 멈춥니다."""
    result: Result = Result.success(initial)
    for step in steps:
        if not result.ok:
            break
        result = step(result.value)
    return result


def validate_required(field_name: str, value: Any) -> Result:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Result.failure(
            ErrorKind.VALIDATION,
            f"{field_name} is required",
            {"value": value},
        )
    return Result.success(value)


def safely(fn: Callable[[], T], kind: ErrorKind = ErrorKind.EXTERNAL_API) -> Result[T]:
    """
    fn을 실행하고 예상치 못한 예외를 실패 결과로 변환합니다.

    컴포넌트 경계에서 사용하며, 원본 메시지와 예외 타입은 context에 보존됩니다.
    """
    try:
        return Result.success(fn())
    except Exception as e:
        return Result.failure(
            kind,
            str(e) or type(e).__name__,
            {"exception": type(e).__name__},
        )
