import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from workbench.domain.jira import JiraConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = "workbench.yaml"

# 인증만 필요한 명령 / 이슈 생성에 필요한 Jira 설정 키
CREDENTIAL_FIELDS: tuple[str, ...] = ("base_url", "username", "api_token")
STORY_FIELDS: tuple[str, ...] = CREDENTIAL_FIELDS + ("default_project",)

# 환경 변수 → (섹션, 키) 매핑. 설정 파일보다 우선합니다.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "WORKBENCH_JIRA_URL": ("jira", "base_url"),
    "WORKBENCH_JIRA_USER": ("jira", "username"),
    "WORKBENCH_JIRA_TOKEN": ("jira", "api_token"),
    "WORKBENCH_AI_API_KEY": ("ai", "api_key"),
}

DEFAULT_CONFIG: dict[str, Any] = {
    "jira": {
        "base_url": None,
        "username": None,
        "api_token": None,
        "default_project": None,
        "default_issue_type": "Task",
        "default_story_points": None,
        "story_points_field": None,
        "default_fix_version_id": None,
        "auto_assign_self": True,
        "auto_add_to_sprint": True,
        "debug": False,
        "fallback_board_ids": [],
        "sprint_exclude_statuses": ["Done"],
        "sprint_show_done_tickets": False,
        "custom_fields": {},
        "field_mappings": {},
        "request_timeout_sec": 30,
    },
    "sprint": {
        "debug": False,
    },
    "ai": {
        "enabled": False,
        "debug": False,
        "gateway_url": None,
        "api_key": None,
        "model": None,
        "max_tokens": 1024,
        "timeout_ms": 5000,
        "prompt": None,
        "message_template": None,
    },
}


class ConfigFileError(RuntimeError):
    """설정 파일을 읽거나 파싱할 수 없을 때 발생합니다."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid configuration file {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class JiraSettings:
    base_url: str | None = None
    username: str | None = None
    api_token: str | None = None
    default_project: str | None = None
    default_issue_type: str = "Task"
    default_story_points: int | float | None = None
    story_points_field: str | None = None
    default_fix_version_id: str | None = None
    auto_assign_self: bool = True
    auto_add_to_sprint: bool = True
    debug: bool = False
    fallback_board_ids: tuple[int, ...] = ()
    sprint_exclude_statuses: tuple[str, ...] = ("Done",)
    sprint_show_done_tickets: bool = False
    custom_fields: dict[str, Any] = field(default_factory=dict)
    field_mappings: dict[str, str] = field(default_factory=dict)
    request_timeout_sec: float = 30.0

    def missing_connection_fields(self, required: tuple[str, ...] = STORY_FIELDS) -> list[str]:
        """필요한 연결 설정 중 비어 있는 항목 (기본값: 이슈 생성에 필요한 항목)"""
        return [name for name in required if not getattr(self, name)]

    def connection(self) -> JiraConfig:
        return JiraConfig(
            base_url=self.base_url or "",
            username=self.username or "",
            api_token=self.api_token or "",
            default_project=self.default_project,
            default_issue_type=self.default_issue_type,
            debug=self.debug,
            timeout_seconds=float(self.request_timeout_sec),
        )


@dataclass(frozen=True)
class SprintSettings:
    debug: bool = False


@dataclass(frozen=True)
class AISettings:
    enabled: bool = False
    debug: bool = False
    gateway_url: str | None = None
    api_key: str | None = None
    model: str | None = None
    max_tokens: int = 1024
    timeout_ms: int = 5000
    prompt: str | None = None
    message_template: list[dict[str, str]] | None = None


@dataclass(frozen=True)
class Settings:
    jira: JiraSettings
    sprint: SprintSettings
    ai: AISettings
    debug: bool = False
    config_files: tuple[str, ...] = ()


def _config_home() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def default_config_paths() -> list[Path]:
    """탐색 순서대로의 설정 파일 후보 (나중 파일이 우선)"""
    return [
        _config_home() / "workbench" / "config.yaml",
        Path.cwd() / PROJECT_CONFIG_FILE,
    ]


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """dict는 재귀 병합하고 그 외 값은 override가 덮어씁니다."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(path, f"YAML parse error: {e}") from e
    except OSError as e:
        raise ConfigFileError(path, str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(path, "top level must be a mapping")
    data = _normalize_keys(data)

    for section in ("jira", "sprint", "ai"):
        if data.get(section) is not None and not isinstance(data[section], dict):
            raise ConfigFileError(path, f"{section} must be a mapping")

    jira = data.get("jira")
    if jira:
        for name in ("custom_fields", "field_mappings"):
            if jira.get(name) is not None and not isinstance(jira[name], dict):
                raise ConfigFileError(path, f"jira.{name} must be a mapping")
        if "fallback_board_ids" in jira:
            jira["fallback_board_ids"] = _board_ids(jira["fallback_board_ids"], path)
        if "sprint_exclude_statuses" in jira:
            jira["sprint_exclude_statuses"] = _status_names(jira["sprint_exclude_statuses"], path)
    return data


def _board_ids(value: Any, path: Path) -> list[int]:
    """보드 ID 목록을 검증합니다. 단일 정수는 한 개짜리 목록으로 취급합니다."""
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    ids = []
    for item in items:
        if isinstance(item, bool):
            raise ConfigFileError(path, "fallback_board_ids must be a list of integers")
        if isinstance(item, int):
            ids.append(item)
        elif isinstance(item, str) and item.strip().isdigit():
            ids.append(int(item))
        else:
            raise ConfigFileError(path, "fallback_board_ids must be a list of integers")
    return ids


def _status_names(value: Any, path: Path) -> list[str]:
    """제외할 상태 목록. 문자열 하나만 적으면 한 개짜리 목록으로 취급합니다."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(s, str) for s in value):
        return list(value)
    raise ConfigFileError(path, "sprint_exclude_statuses must be a list of status names")


def _normalize_keys(data: Any) -> Any:
    """kebab-case 키를 snake_case로 통일합니다. custom_fields 내부 키는 유지합니다."""
    if not isinstance(data, dict):
        return data
    normalized = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name in ("custom_fields", "field_mappings"):
            normalized[name] = value
        else:
            normalized[name] = _normalize_keys(value)
    return normalized


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config.setdefault(section, {})[key] = value
            logger.debug("환경 변수 적용: %s → %s.%s", env_name, section, key)
    return config


def _section(data: dict[str, Any], cls: type) -> Any:
    known = {name for name in cls.__dataclass_fields__}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("알 수 없는 설정 키 무시: %s (%s)", ", ".join(unknown), cls.__name__)
    return {k: v for k, v in data.items() if k in known}


def build_settings(
    config_path: str | os.PathLike | None = None,
    *,
    debug: bool = False,
    debug_jira: bool = False,
    debug_sprint: bool = False,
    debug_ai: bool = False,
) -> Settings:
    """
    설정을 로드합니다.

    우선순위 (나중이 우선): 기본값 → ~/.config/workbench/config.yaml
    → ./workbench.yaml → 환경 변수 (.env 포함).
    config_path가 주어지면 기본 탐색 경로 대신 해당 파일만 사용하며,
    파일이 없으면 ConfigFileError를 발생시킵니다.
    """
    load_dotenv()

    if config_path is not None:
        explicit = Path(config_path).expanduser()
        if not explicit.is_file():
            raise ConfigFileError(explicit, "file not found")
        candidates = [explicit]
    else:
        candidates = [p for p in default_config_paths() if p.is_file()]

    config = copy.deepcopy(DEFAULT_CONFIG)
    for path in candidates:
        config = deep_merge(config, read_config_file(path))
        logger.debug("설정 파일 로드: %s", path)
    config = _apply_env_overrides(config)

    jira_data = _section(config.get("jira") or {}, JiraSettings)
    jira_data["fallback_board_ids"] = tuple(int(b) for b in jira_data.get("fallback_board_ids") or ())
    jira_data["sprint_exclude_statuses"] = tuple(jira_data.get("sprint_exclude_statuses") or ())
    jira_data["custom_fields"] = dict(jira_data.get("custom_fields") or {})
    jira_data["field_mappings"] = dict(jira_data.get("field_mappings") or {})
    jira_data["debug"] = bool(jira_data.get("debug")) or debug or debug_jira

    sprint_data = _section(config.get("sprint") or {}, SprintSettings)
    sprint_data["debug"] = bool(sprint_data.get("debug")) or debug or debug_sprint

    ai_data = _section(config.get("ai") or {}, AISettings)
    ai_data["debug"] = bool(ai_data.get("debug")) or debug or debug_ai

    return Settings(
        jira=JiraSettings(**jira_data),
        sprint=SprintSettings(**sprint_data),
        ai=AISettings(**ai_data),
        debug=debug,
        config_files=tuple(str(p) for p in candidates),
    )
