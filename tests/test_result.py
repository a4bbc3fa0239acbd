import pytest

from workbench.domain.result import (
    EXIT_CODES,
    ErrorKind,
    Result,
    chain,
    exit_code_for,
    safely,
    validate_required,
)


class TestResult:
    def test_success_may_carry_none(self):
        result = Result.success(None)
        assert result.ok
        assert result.value is None

    def test_then_short_circuits_on_failure(self):
        calls = []
        failed = Result.failure(ErrorKind.NETWORK, "down")
        out = failed.then(lambda v: calls.append(v) or Result.success(v))
        assert out is failed
        assert calls == []

    def test_map_wraps_value(self):
        assert Result.success(2).map(lambda v: v * 3).value == 6

    def test_unwrap_or(self):
        assert Result.failure(ErrorKind.NOT_FOUND, "x").unwrap_or("fallback") == "fallback"
        assert Result.success("v").unwrap_or("fallback") == "v"


class TestChain:
    def test_runs_steps_in_order(self):
        result = chain(1, lambda v: Result.success(v + 1), lambda v: Result.success(v * 10))
        assert result.value == 20

    def test_returns_first_failure_unchanged(self):
        seen = []

        def fail(_):
            return Result.failure(ErrorKind.CONFIG, "missing base_url", {"missing_fields": ["base_url"]})

        def never(v):
            seen.append(v)
            return Result.success(v)

        result = chain("draft", fail, never)
        assert not result.ok
        assert result.error.kind is ErrorKind.CONFIG
        assert result.error.context == {"missing_fields": ["base_url"]}
        assert seen == []


class TestValidateRequired:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_validation_failure(self, value):
        result = validate_required("Summary", value)
        assert result.error.kind is ErrorKind.VALIDATION
        assert result.error.message == "Summary is required"

    def test_present_value_passes_through(self):
        assert validate_required("Summary", "Fix login").value == "Fix login"


class TestSafely:
    def test_exception_becomes_failure_with_type(self):
        def boom():
            raise RuntimeError("kaboom")

        result = safely(boom, ErrorKind.NETWORK)
        assert result.error.kind is ErrorKind.NETWORK
        assert result.error.message == "kaboom"
        assert result.error.context["exception"] == "RuntimeError"

    def test_return_value_wrapped(self):
        assert safely(lambda: 42).value == 42


class TestExitCodes:
    @pytest.mark.parametrize("kind, code", [
        (ErrorKind.VALIDATION, 2),
        (ErrorKind.CONFIG, 3),
        (ErrorKind.AUTH, 4),
        (ErrorKind.NETWORK, 5),
        (ErrorKind.TIMEOUT, 5),
        (ErrorKind.NOT_FOUND, 6),
        (ErrorKind.FILE_IO, 7),
        (ErrorKind.EXTERNAL_API, 1),
    ])
    def test_kind_to_exit_code(self, kind, code):
        assert exit_code_for(kind) == code

    def test_success_is_zero(self):
        assert EXIT_CODES["success"] == 0
