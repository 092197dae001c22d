"""
Tests for turning resolver outcomes into LINE message payloads.

Run with: pytest tests/test_renderer.py -v
"""
from conftest import SAMPLE_VALUES, many_values

from formbot.renderer import (
    MSG_EMPTY_TABLE,
    MSG_NOT_FOUND,
    build_pages,
    detail_text,
    page_messages,
    paginate,
    render,
)
from formbot.resolver import Candidates, EmptyTable, NotFound, resolve
from formbot.sheets import frame_from_values


def _bubble_codes(page):
    return [b["body"]["contents"][0]["text"].replace("📄 ", "") for b in page]


class TestTextOutcomes:

    def test_empty_table_and_not_found_are_distinct(self):
        empty = render(EmptyTable())
        missing = render(NotFound("zzz"))
        assert empty == [{"type": "text", "text": MSG_EMPTY_TABLE}]
        assert missing == [{"type": "text", "text": MSG_NOT_FOUND}]
        assert MSG_EMPTY_TABLE != MSG_NOT_FOUND


class TestDetail:

    def test_detail_lists_name_and_locations(self, sample_table):
        msgs = render(resolve("F001", sample_table))
        assert len(msgs) == 1
        text = msgs[0]["text"]
        for expected in ("F001", "Leave Form", "HR Drive", "HR Portal", "Tbl_Leave"):
            assert expected in text
        assert "Fin Drive" not in text

    def test_detail_dedupes_and_drops_empty_values(self):
        df = frame_from_values(SAMPLE_VALUES + [
            ["F001", "Leave Form", "Archive", "", "Tbl_Leave", "Monthly report"],
        ])
        text = detail_text(resolve("F001", df).rows)
        lines = text.splitlines()
        assert lines[0] == "📄 F001 Leave Form"
        assert lines.count("📊 Tbl_Leave") == 1
        assert "📁 HR Drive" in lines and "📁 Archive" in lines
        assert "🔗 HR Portal" in lines
        assert "📝 Monthly report" in lines

    def test_detail_skips_empty_groups(self):
        df = frame_from_values([SAMPLE_VALUES[0], ["F009", "Bare Form"]])
        assert detail_text(resolve("F009", df).rows) == "📄 F009 Bare Form"


class TestCandidates:

    def test_two_candidates_single_page(self, sample_table):
        msgs = render(resolve("form", sample_table))
        assert len(msgs) == 1
        carousel = msgs[0]["contents"]
        assert msgs[0]["type"] == "flex"
        assert carousel["type"] == "carousel"
        assert _bubble_codes(carousel["contents"]) == ["F001", "F002"]

    def test_card_button_resubmits_code(self, sample_table):
        page = build_pages(resolve("form", sample_table))[0]
        first = page[0]["body"]["contents"]
        assert first[1]["text"] == "Leave Form"
        assert first[2]["action"] == {"type": "message", "label": "🔍 ดูรายละเอียด", "text": "F001"}

    def test_pages_hold_at_most_twelve(self):
        outcome = resolve("form number", frame_from_values(many_values(30)))
        pages = build_pages(outcome)
        assert [len(p) for p in pages] == [12, 12, 6]
        flat = [code for p in pages for code in _bubble_codes(p)]
        assert flat == outcome.codes

    def test_first_screen_has_next_button(self):
        msgs = render(resolve("form number", frame_from_values(many_values(30))))
        assert len(msgs) == 2
        action = msgs[1]["template"]["actions"][0]
        assert action["text"] == "next:1"

    def test_last_page_has_no_next_button(self):
        pages = build_pages(Candidates([f"C{i:02d}" for i in range(25)]))
        assert len(page_messages(pages, 1)) == 2
        assert page_messages(pages, 1)[1]["template"]["actions"][0]["text"] == "next:2"
        assert len(page_messages(pages, 2)) == 1

    def test_next_button_can_be_suppressed(self):
        pages = build_pages(Candidates([f"C{i:02d}" for i in range(25)]))
        msgs = page_messages(pages, 0, with_next=False)
        assert len(msgs) == 1
        assert msgs[0]["type"] == "flex"

    def test_paginate_exact_multiple(self):
        assert [len(p) for p in paginate(list(range(24)))] == [12, 12]
        assert paginate([]) == []
