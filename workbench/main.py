import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Sequence, TextIO

import httpx

from workbench.adapters.inbound.cli.commands import build_parser, dispatch
from workbench.configuration.container import build_container
from workbench.configuration.settings import ConfigFileError, build_settings
from workbench.domain.result import EXIT_CODES

# 서브시스템별 디버그 플래그 → DEBUG로 올릴 로거
DEBUG_LOGGERS: dict[str, tuple[str, ...]] = {
    "debug_jira": (
        "workbench.adapters.outbound.jira_http_client",
        "workbench.adapters.outbound.jira_adapter",
        "workbench.adapters.outbound.agile_adapter",
    ),
    "debug_sprint": (
        "workbench.application.services.sprint_resolver",
        "workbench.application.use_cases.get_sprint_info",
    ),
    "debug_ai": (
        "workbench.adapters.outbound.ai_gateway_adapter",
        "workbench.application.services.prompt_renderer",
    ),
}


def _log_dir() -> Path:
    state_home = os.getenv("XDG_STATE_HOME")
    base = Path(state_home) if state_home else Path.home() / ".local" / "state"
    return base / "workbench" / "logs"


def setup_logging(
    debug: bool = False,
    debug_jira: bool = False,
    debug_sprint: bool = False,
    debug_ai: bool = False,
) -> logging.Logger:
    """로깅 설정: stderr와 파일 두 곳에 로그 출력"""
    formatter = logging.Formatter(
        '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # 재호출 시 이전에 등록한 핸들러 제거
    for handler in list(root_logger.handlers):
        if getattr(handler, "_workbench", False):
            root_logger.removeHandler(handler)
            handler.close()

    flags = {"debug_jira": debug_jira, "debug_sprint": debug_sprint, "debug_ai": debug_ai}
    any_debug = debug or any(flags.values())

    # 1. stderr 핸들러: 평소에는 경고 이상만, 디버그 플래그가 있으면 DEBUG까지
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.DEBUG if any_debug else logging.WARNING)
    stderr_handler._workbench = True
    root_logger.addHandler(stderr_handler)

    # 2. 파일 핸들러 (최대 10MB, 5개 백업)
    try:
        log_dir = _log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / "workbench.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
    except OSError as e:
        root_logger.warning("로그 파일을 열 수 없어 파일 로깅을 생략합니다: %s", e)
    else:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG if any_debug else logging.INFO)
        file_handler._workbench = True
        root_logger.addHandler(file_handler)

    # --debug가 아닌 서브시스템 플래그는 해당 로거만 DEBUG, 나머지는 INFO
    for name, enabled in flags.items():
        for logger_name in DEBUG_LOGGERS[name]:
            logging.getLogger(logger_name).setLevel(logging.DEBUG if (debug or enabled) else logging.INFO)
    logging.getLogger("workbench").setLevel(logging.DEBUG if debug else logging.INFO)
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)

    return logging.getLogger(__name__)


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr

    args = build_parser().parse_args(argv)
    logger = setup_logging(args.debug, args.debug_jira, args.debug_sprint, args.debug_ai)
    logger.info("=" * 60)
    logger.info("workbench 명령 시작: %s", args.command)

    try:
        settings = build_settings(
            args.config,
            debug=args.debug,
            debug_jira=args.debug_jira,
            debug_sprint=args.debug_sprint,
            debug_ai=args.debug_ai,
        )
    except ConfigFileError as e:
        logger.info("❌ 설정 로드 실패: %s", e)
        print(f"Error: {e}", file=err)
        return EXIT_CODES["config-error"]

    # 설정 파일의 debug 값까지 반영해 로깅을 다시 구성
    logger = setup_logging(settings.debug, settings.jira.debug, settings.sprint.debug, settings.ai.debug)
    logger.info("설정 파일: %s", ", ".join(settings.config_files) or "(없음)")
    logger.info("Jira URL: %s", settings.jira.base_url)
    logger.info("Jira User: %s", settings.jira.username)

    container = build_container(settings, transport=transport)
    logger.info("✅ Container 빌드 완료")

    try:
        code = dispatch(args, container, out, err)
    except Exception as e:
        logger.exception("명령 실행 중 예기치 못한 오류")
        print(f"Error: {type(e).__name__}: {e}", file=err)
        return EXIT_CODES["general-error"]

    logger.info("workbench 명령 종료: exit=%d", code)
    return code


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
