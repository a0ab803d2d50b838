"""Tests for the append-only write path."""

from datetime import datetime

import pytest

from mcp_timelog.errors import InvalidPropertyError, ReservedPropertyError
from mcp_timelog.models import DEFAULT_TITLE
from mcp_timelog.parser import parse_document
from mcp_timelog.store import LogStore
from mcp_timelog.writer import append_entry, build_entry, default_host, render_entry

NOW = datetime(2024, 1, 1, 10, 0, 0, 123456)


class TestBuildEntry:
    """Tests for build_entry."""

    def test_assigns_id_and_timestamp(self):
        entry = build_entry(title="Work", host="box", now=NOW)
        assert entry.entry_id == "box-20240101100000123"
        assert entry.timestamp == NOW
        assert entry.properties["ID"] == entry.entry_id
        assert entry.properties["TIMESTAMP"] == "2024-01-01 10:00:00.123456"

    def test_default_title(self):
        entry = build_entry(host="box", now=NOW)
        assert entry.title == DEFAULT_TITLE
        assert "TITLE" not in entry.properties

    def test_non_null_fields_become_properties(self):
        entry = build_entry(
            title="Work",
            tags=":code:",
            body="notes",
            properties={"project": "acme", "client": None},
            host="box",
            now=NOW,
        )
        assert entry.properties["TITLE"] == "Work"
        assert entry.properties["TAGS"] == ":code:"
        assert entry.properties["PROJECT"] == "acme"
        assert "CLIENT" not in entry.properties
        assert "BODY" not in entry.properties
        assert entry.body == "notes"

    def test_namespaced_key_accepted(self):
        entry = build_entry(properties={"timelog-project": "acme"}, host="box", now=NOW)
        assert entry.properties["PROJECT"] == "acme"

    def test_never_sets_duration(self):
        assert "DURATION" not in build_entry(host="box", now=NOW).properties

    @pytest.mark.parametrize("key", ["id", "TIMESTAMP", "duration", "timelog-duration"])
    def test_reserved_keys_rejected(self, key):
        with pytest.raises(ReservedPropertyError):
            build_entry(properties={key: "x"}, host="box", now=NOW)

    def test_key_whitespace_becomes_underscore(self):
        entry = build_entry(properties={"client name": "acme"}, host="box", now=NOW)
        assert entry.properties["CLIENT_NAME"] == "acme"
        assert entry.get("client name") == "acme"

    @pytest.mark.parametrize("key", ["", "   ", "a:b", "caf\u00e9", "-lead", "timelog-"])
    def test_unreadable_keys_rejected(self, key):
        with pytest.raises(InvalidPropertyError):
            build_entry(properties={key: "x"}, host="box", now=NOW)

    def test_newlines_flattened(self):
        entry = build_entry(title="two\nlines", properties={"note": "a\nb"}, host="box", now=NOW)
        assert entry.title == "two lines"
        assert entry.properties["NOTE"] == "a b"

    def test_default_host(self):
        assert default_host()
        assert "." not in default_host()


class TestRenderEntry:
    """Tests for render_entry."""

    def test_round_trips_through_parser(self):
        entry = build_entry(title="Work", tags=":code:", body="first\nsecond", properties={"project": "acme"}, host="box", now=NOW)
        parsed = parse_document(render_entry(entry))

        assert len(parsed) == 1
        assert parsed[0].entry_id == entry.entry_id
        assert parsed[0].timestamp == NOW
        assert parsed[0].title == "Work"
        assert parsed[0].tags == ":code:"
        assert parsed[0].body == "first\nsecond"
        assert parsed[0].get("PROJECT") == "acme"

    def test_spaced_key_reads_back(self):
        entry = build_entry(properties={"client name": "acme"}, host="box", now=NOW)
        parsed = parse_document(render_entry(entry))
        assert parsed[0].get("client name") == "acme"
        assert parsed[0].get("CLIENT_NAME") == "acme"

    def test_heading_like_body_lines_read_back(self):
        body = "Done today:\n* fixed parser\n** wrote tests\n,* already escaped"
        text = render_entry(build_entry(title="Notes", body=body, host="box", now=NOW))
        assert "\n,* fixed parser\n" in text

        assert parse_document(text)[0].body == body

    def test_body_with_heading_line_keeps_next_entry(self):
        first = build_entry(title="One", body="* bullet", host="box", now=NOW)
        second = build_entry(title="Two", host="box", now=NOW)
        parsed = parse_document(render_entry(first) + render_entry(second))
        assert [e.title for e in parsed] == ["One", "Two"]

    def test_ends_with_blank_line(self):
        assert render_entry(build_entry(host="box", now=NOW)).endswith(":END:\n\n")


class TestAppendEntry:
    """Tests for append_entry."""

    def test_creates_document_and_parents(self, temp_project):
        store = LogStore(temp_project / "log")
        document = temp_project / "log" / "deep" / "box.org"

        append_entry(store, document, build_entry(title="One", host="box", now=NOW))

        assert document.exists()
        assert len(parse_document(document.read_text())) == 1

    def test_appends_without_touching_existing_text(self, temp_project):
        store = LogStore(temp_project / "log")
        document = temp_project / "log" / "box.org"
        document.parent.mkdir(parents=True)
        original = "#+TITLE: hand written\n* Broken entry\n"
        document.write_text(original)

        append_entry(store, document, build_entry(title="Two", host="box", now=NOW))

        content = document.read_text()
        assert content.startswith(original)
        assert [e.title for e in parse_document(content)] == ["Two"]

    def test_sets_source(self, temp_project):
        store = LogStore(temp_project / "log")
        document = temp_project / "log" / "box.org"
        entry = append_entry(store, document, build_entry(host="box", now=NOW))
        assert entry.source == str(document)
