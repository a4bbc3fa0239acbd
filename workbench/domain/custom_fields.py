"""
Jira 커스텀 필드 값 포맷터.

호출자가 넘긴 값의 모양(shape)을 보고 필드 타입을 추론한 뒤,
Jira REST API가 기대하는 wire 포맷으로 정규화합니다.

지원하는 모양 (먼저 매칭되는 것이 우선):
- 스칼라 (str / int / float / bool)        → 그대로
- 날짜 (date / datetime)                   → ISO 8601 문자열
- 문자열 리스트 (labels)                     → 그대로
- {"id": ...}                               → {"id"}        (single select)
- {"id": ..., "name": ...}                  → {"id"}        (version / component, ID 우선)
- {"id": ..., "child": ...}                 → {"id", "child"} (cascading select)
- {"accountId": ...}                        → {"accountId"} (user picker)
- {"name": ...}                             → {"name"}      (legacy user / named ref)
- dict 리스트                                → 요소별 포맷 (multi select)
- 그 외                                      → 그대로
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

CUSTOM_FIELD_PREFIX = "customfield_"
_NUMERIC_KEY = re.compile(r"^\d+$")


def _has(value: dict, key: str) -> bool:
    return value.get(key) is not None


@dataclass(frozen=True)
class ScalarValue:
    value: Any

    def to_wire(self) -> Any:
        return self.value


@dataclass(frozen=True)
class StringList:
    values: list

    def to_wire(self) -> list:
        return self.values


@dataclass(frozen=True)
class IdRef:
    id: Any

    def to_wire(self) -> dict:
        return {"id": self.id}


@dataclass(frozen=True)
class CascadingRef:
    id: Any
    child: "CustomFieldValue"

    def to_wire(self) -> dict:
        return {"id": self.id, "child": self.child.to_wire()}


@dataclass(frozen=True)
class AccountRef:
    account_id: Any

    def to_wire(self) -> dict:
        return {"accountId": self.account_id}


@dataclass(frozen=True)
class NamedRef:
    name: Any

    def to_wire(self) -> dict:
        return {"name": self.name}


@dataclass(frozen=True)
class VersionRef:
    """Version / component picker. ID가 있으면 ID를 우선 사용합니다."""
    name: Any
    id: Any = None

    def to_wire(self) -> dict:
        if self.id is not None:
            return {"id": self.id}
        return {"name": self.name}


@dataclass(frozen=True)
class RefList:
    items: tuple

    def to_wire(self) -> list:
        return [item.to_wire() for item in self.items]


@dataclass(frozen=True)
class OpaqueValue:
    value: Any

    def to_wire(self) -> Any:
        return self.value


CustomFieldValue = Union[
    ScalarValue, StringList, IdRef, CascadingRef, AccountRef,
    NamedRef, VersionRef, RefList, OpaqueValue,
]


def classify(value: Any) -> CustomFieldValue:
    """값의 구조로 필드 타입을 판별합니다. 모든 입력은 어떤 variant로든 매핑됩니다."""
    if isinstance(value, (str, int, float, bool)):
        return ScalarValue(value)

    # YAML의 따옴표 없는 날짜는 date / datetime으로 로드됨
    if isinstance(value, date):
        return ScalarValue(value.isoformat())

    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return StringList(value)

    if isinstance(value, dict):
        if _has(value, "id") and not _has(value, "child"):
            if _has(value, "name") and not _has(value, "accountId"):
                return VersionRef(name=value["name"], id=value["id"])
            return IdRef(value["id"])
        if _has(value, "id") and _has(value, "child"):
            return CascadingRef(id=value["id"], child=classify(value["child"]))
        if _has(value, "accountId"):
            return AccountRef(value["accountId"])
        if _has(value, "name"):
            # 위에서 id / accountId가 있는 경우는 이미 처리됨
            return NamedRef(value["name"])

    if isinstance(value, list) and all(isinstance(v, dict) for v in value):
        return RefList(tuple(classify(v) for v in value))

    return OpaqueValue(value)


def format_custom_field_value(value: Any) -> Any:
    """커스텀 필드 값을 Jira API wire 포맷으로 변환합니다 (순수 함수, 멱등)."""
    return classify(value).to_wire()


def normalize_field_key(key: Any, field_mappings: dict | None = None) -> str:
    """
    필드 키를 customfield_<digits> 형식으로 정규화합니다.

    - "customfield_10001" → 그대로
    - "10002"             → "customfield_10002"
    - "epic-link"         → field_mappings["epic-link"]
    - 그 외               → str(key)
    """
    mappings = field_mappings or {}
    text = str(key)
    if text.startswith(CUSTOM_FIELD_PREFIX):
        return text
    if _NUMERIC_KEY.match(text):
        return f"{CUSTOM_FIELD_PREFIX}{text}"
    if key in mappings:
        return str(mappings[key])
    if text in mappings:
        return str(mappings[text])
    return text


def prepare_custom_fields(
    custom_fields: dict | None,
    field_mappings: dict | None = None,
) -> dict[str, Any]:
    """커스텀 필드 맵의 키를 정규화하고 값을 포맷합니다."""
    if not custom_fields:
        return {}
    return {
        normalize_field_key(key, field_mappings): format_custom_field_value(value)
        for key, value in custom_fields.items()
    }


def format_issue_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """customfield_* 키의 값만 포맷하고 나머지 필드는 그대로 둡니다."""
    return {
        key: format_custom_field_value(value)
        if isinstance(key, str) and key.startswith(CUSTOM_FIELD_PREFIX)
        else value
        for key, value in fields.items()
    }
