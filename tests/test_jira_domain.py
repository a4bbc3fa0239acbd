import pytest

from workbench.domain.jira import JiraConfig, JiraResponse, Sprint, parse_ticket_id


class TestParseTicketId:
    def test_lowercase_key_is_normalized(self):
        ticket = parse_ticket_id("proj-123")
        assert ticket.project == "PROJ"
        assert ticket.number == "123"
        assert ticket.full == "PROJ-123"

    def test_surrounding_whitespace_ignored(self):
        assert parse_ticket_id("  ab2-7 ").full == "AB2-7"

    @pytest.mark.parametrize("text", ["invalid", "", None, "123-ABC", "PROJ-", "PROJ-12a", "-12", "P ROJ-1"])
    def test_malformed_returns_none(self, text):
        assert parse_ticket_id(text) is None


class TestSprint:
    def test_from_api_reads_end_date(self):
        s = Sprint.from_api({"id": 55, "name": "Sprint 55", "state": "active", "endDate": "2026-10-24T12:00:00.000Z"})
        assert s.id == 55
        assert s.end_date.startswith("2026-10-24")

    def test_missing_end_date(self):
        assert Sprint.from_api({"id": 1}).end_date is None


class TestJiraConfig:
    def test_browse_url_strips_trailing_slash(self):
        config = JiraConfig(base_url="https://x.atlassian.net/", username="u", api_token="t")
        assert config.browse_url("PROJ-1") == "https://x.atlassian.net/browse/PROJ-1"


def test_body_dict_ignores_non_mapping_bodies():
    assert JiraResponse(status=500, body="<html>oops</html>").body_dict() == {}
