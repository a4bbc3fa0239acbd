from datetime import date, datetime

import pytest

from workbench.domain.custom_fields import (
    AccountRef,
    CascadingRef,
    IdRef,
    NamedRef,
    OpaqueValue,
    RefList,
    ScalarValue,
    StringList,
    VersionRef,
    classify,
    format_custom_field_value,
    format_issue_fields,
    normalize_field_key,
    prepare_custom_fields,
)

SAMPLES = [
    "text",
    5,
    2.5,
    True,
    ["backend", "urgent"],
    [],
    {"id": "10100"},
    {"id": "10400", "name": "v2.0"},
    {"id": "1", "child": {"id": "2"}},
    {"accountId": "abc"},
    {"name": "jdoe"},
    [{"id": "1"}, {"name": "x"}],
    {"value": "opaque"},
    None,
]


class TestFormatCustomFieldValue:
    def test_select_by_id(self):
        assert format_custom_field_value({"id": "10100"}) == {"id": "10100"}

    def test_user_picker(self):
        assert format_custom_field_value({"accountId": "abc"}) == {"accountId": "abc"}

    def test_version_prefers_id(self):
        assert format_custom_field_value({"name": "v2.0", "id": "10400"}) == {"id": "10400"}

    def test_cascading_select_keeps_child(self):
        assert format_custom_field_value({"id": "1", "child": {"id": "2", "value": "x"}}) == {
            "id": "1", "child": {"id": "2"},
        }

    def test_extra_keys_are_dropped(self):
        assert format_custom_field_value({"id": "7", "self": "https://...", "value": "High"}) == {"id": "7"}

    def test_multi_select_formats_each_item(self):
        assert format_custom_field_value([{"id": "1", "value": "a"}, {"accountId": "z"}]) == [
            {"id": "1"}, {"accountId": "z"},
        ]

    def test_scalars_and_labels_unchanged(self):
        assert format_custom_field_value(8) == 8
        assert format_custom_field_value(["a", "b"]) == ["a", "b"]

    def test_unknown_shape_passes_through(self):
        assert format_custom_field_value({"value": "High"}) == {"value": "High"}

    def test_dates_become_iso_strings(self):
        assert format_custom_field_value(date(2024, 5, 1)) == "2024-05-01"
        assert format_custom_field_value(datetime(2024, 5, 1, 9, 30)) == "2024-05-01T09:30:00"

    @pytest.mark.parametrize("value", SAMPLES)
    def test_idempotent(self, value):
        once = format_custom_field_value(value)
        assert format_custom_field_value(once) == once


class TestClassify:
    @pytest.mark.parametrize("value, variant", [
        ("x", ScalarValue),
        (["a"], StringList),
        ({"id": "1"}, IdRef),
        ({"id": "1", "name": "v1"}, VersionRef),
        ({"id": "1", "child": {"id": "2"}}, CascadingRef),
        ({"accountId": "a"}, AccountRef),
        ({"name": "n"}, NamedRef),
        ([{"id": "1"}], RefList),
        ({"other": 1}, OpaqueValue),
    ])
    def test_shape_to_variant(self, value, variant):
        assert isinstance(classify(value), variant)

    def test_none_values_count_as_absent(self):
        assert isinstance(classify({"id": "1", "child": None}), IdRef)


class TestFieldKeys:
    def test_numeric_key_gets_prefix(self):
        assert normalize_field_key("10002") == "customfield_10002"
        assert normalize_field_key(10002) == "customfield_10002"

    def test_prefixed_key_unchanged(self):
        assert normalize_field_key("customfield_10001") == "customfield_10001"

    def test_mapping_applies_to_names(self):
        assert normalize_field_key("epic-link", {"epic-link": "customfield_10014"}) == "customfield_10014"

    def test_unmapped_name_kept(self):
        assert normalize_field_key("labels") == "labels"

    def test_prepare_custom_fields(self):
        prepared = prepare_custom_fields(
            {"10002": 3, "team": {"id": "55", "value": "SRE"}, "customfield_10300": ["ops"]},
            {"team": "customfield_10500"},
        )
        assert prepared == {
            "customfield_10002": 3,
            "customfield_10500": {"id": "55"},
            "customfield_10300": ["ops"],
        }

    def test_prepare_empty(self):
        assert prepare_custom_fields(None) == {}


def test_format_issue_fields_only_touches_custom_fields():
    fields = {
        "project": {"key": "PROJ", "name": "Project"},
        "assignee": {"accountId": "a", "displayName": "Me"},
        "customfield_10100": {"id": "1", "value": "x"},
    }
    formatted = format_issue_fields(fields)
    assert formatted["project"] == {"key": "PROJ", "name": "Project"}
    assert formatted["assignee"] == {"accountId": "a", "displayName": "Me"}
    assert formatted["customfield_10100"] == {"id": "1"}
