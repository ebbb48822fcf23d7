"""
Unit tests for the run stream normalizer.

Run: pytest tests/unit/test_normalizer.py -v
"""
import pytest

from quizdoc.exceptions import NormalizeError
from quizdoc.models import PARAGRAPH_BREAK, ImageHandle, TextRun
from quizdoc.normalizer import normalize_runs, normalize_text, runs_from_plain_text


def image_run(ref_id="rId1"):
    return TextRun(text="", is_image_ref=True, image_ref=ImageHandle(ref_id=ref_id))


class TestParagraphs:
    """Runs concatenate into lines; breaks start new ones."""

    def test_runs_in_one_paragraph_join(self):
        lines = normalize_runs([
            TextRun("1. What"),
            TextRun(" is it?", bold=True),
            PARAGRAPH_BREAK,
            TextRun("A. x"),
        ])
        assert [line.text for line in lines] == ["1. What is it?", "A. x"]

    def test_formatting_stays_on_runs(self):
        lines = normalize_runs([TextRun("B. "), TextRun("4", bold=True)])
        assert len(lines) == 1
        assert [run.bold for run in lines[0].runs] == [False, True]

    def test_blank_and_image_lines_are_kept(self):
        lines = normalize_runs([
            TextRun("a"),
            PARAGRAPH_BREAK,
            PARAGRAPH_BREAK,
            image_run(),
            PARAGRAPH_BREAK,
            TextRun("b"),
        ])
        assert len(lines) == 4
        assert lines[1].is_blank
        assert lines[2].is_image_only
        assert lines[2].images[0].ref_id == "rId1"
        assert lines[3].text == "b"

    def test_positions_follow_document_order(self):
        lines = normalize_text("one\ntwo\n\nthree")
        assert [line.position for line in lines] == [0, 1, 2, 3]

    def test_newline_inside_run_splits_line(self):
        lines = normalize_runs([TextRun("A. x\nB. y", underline=True)])
        assert [line.text for line in lines] == ["A. x", "B. y"]
        assert all(run.underline for line in lines for run in line.runs)

    def test_non_breaking_space_becomes_space(self):
        lines = normalize_runs([TextRun("A.\u00a0x")])
        assert lines[0].text == "A. x"


class TestMalformedInput:
    """Malformed streams raise NormalizeError."""

    def test_non_run_item(self):
        with pytest.raises(NormalizeError):
            normalize_runs([TextRun("ok"), "not a run"])

    def test_run_without_text(self):
        with pytest.raises(NormalizeError):
            normalize_runs([TextRun(text=None)])

    def test_image_run_without_image(self):
        with pytest.raises(NormalizeError):
            normalize_runs([TextRun(text="", is_image_ref=True)])

    def test_plain_text_must_be_string(self):
        with pytest.raises(NormalizeError):
            runs_from_plain_text(123)


class TestPlainText:
    """Plain text becomes one paragraph per line."""

    def test_blank_lines_survive(self):
        lines = normalize_runs(runs_from_plain_text("a\n\nb"))
        assert [line.text for line in lines] == ["a", "", "b"]
        assert lines[1].is_blank

    def test_windows_newlines(self):
        lines = normalize_text("a\r\nb")
        assert [line.text for line in lines] == ["a", "b"]

    def test_plain_text_has_no_emphasis(self):
        line = normalize_text("B. 4")[0]
        assert not line.is_emphasized_from(0)
