"""
Unit tests for the per-type block parsers.

Run: pytest tests/unit/test_block_parsers.py -v
"""
import pytest

from quizdoc.classifier import QuestionClassifier
from quizdoc.models import PARAGRAPH_BREAK, ImageHandle, QuestionType, TextRun
from quizdoc.normalizer import normalize_runs, normalize_text
from quizdoc.parsers import (
    ChoiceParser,
    FillBlankParser,
    MatchingParser,
    ParserRegistry,
    UnknownParser,
    split_inline_answer,
)
from quizdoc.segmenter import QuestionSegmenter


@pytest.fixture
def parse(markers):
    """Segment, classify and parse the first block of a document."""
    segmenter = QuestionSegmenter(markers)
    classifier = QuestionClassifier(markers)

    def run(source):
        lines = normalize_text(source) if isinstance(source, str) else normalize_runs(source)
        verdict = classifier.classify(segmenter.segment(lines)[0])
        return ParserRegistry.create(verdict.type, markers).parse(verdict)

    return run


def image(ref_id):
    return TextRun(text="", is_image_ref=True, image_ref=ImageHandle(ref_id=ref_id, data=b"\x89PNG\r\n\x1a\n"))


class TestRegistry:
    """Every question type has a parser."""

    @pytest.mark.parametrize("question_type,parser_class", [
        (QuestionType.SINGLE_CHOICE, ChoiceParser),
        (QuestionType.MULTIPLE_CHOICE, ChoiceParser),
        (QuestionType.MATCHING, MatchingParser),
        (QuestionType.FILL_IN_BLANK, FillBlankParser),
        (QuestionType.UNKNOWN, UnknownParser),
    ])
    def test_registered(self, question_type, parser_class):
        assert ParserRegistry.get(question_type) is parser_class


class TestChoiceParser:
    """Title, options and inline correctness."""

    def test_options_and_correctness(self, parse):
        draft = parse("1. What is 2+2?\nA. 3\nB. *4\nC. 5")
        assert draft.title == "What is 2+2?"
        assert [(o.key, o.text, o.is_correct) for o in draft.options] == [
            ("A", "3", False),
            ("B", "4", True),
            ("C", "5", False),
        ]
        assert not draft.pending_key_lookup

    def test_unmarked_options_wait_for_key(self, parse):
        draft = parse("1. Capital?\nA. Paris\nB. Nice")
        assert draft.pending_key_lookup
        assert not any(o.is_correct for o in draft.options)

    def test_stem_lines_become_content(self, parse):
        draft = parse("1.\nWhat is the capital?\nSee the map below.\nA. Paris\nB. *Nice")
        assert draft.title == "What is the capital?"
        assert draft.content == "See the map below."

    def test_header_title_keeps_following_lines_as_content(self, parse):
        draft = parse("1. Read the passage.\nThe sky is blue.\nWhat color is the sky?\nA. *Blue\nB. Red")
        assert draft.title == "Read the passage."
        assert draft.content == "The sky is blue.\nWhat color is the sky?"

    def test_images_attach_to_stem_and_option(self, parse):
        draft = parse([
            TextRun("1. Which shape is round?"), PARAGRAPH_BREAK,
            image("rIdStem"), PARAGRAPH_BREAK,
            TextRun("A. *Circle"), PARAGRAPH_BREAK,
            image("rIdOption"), PARAGRAPH_BREAK,
            TextRun("B. Square"),
        ])
        assert draft.image.ref_id == "rIdStem"
        assert draft.options[0].image_ref == "rIdOption"
        assert draft.options[1].image_ref is None
        assert draft.to_question().image_ref == "rIdStem"


class TestMatchingParser:
    """Pairs from adjacent lists or pair lines."""

    def test_columns_zip_by_position(self, parse):
        draft = parse("Question 1: Match\n1. Paris\n2. Tokyo\na. France\nb. Japan")
        assert draft.type is QuestionType.MATCHING
        assert [o.text for o in draft.options] == ["Paris", "France", "Tokyo", "Japan"]
        assert not any(o.is_correct for o in draft.options)
        assert draft.warnings == ()

    def test_uneven_columns_truncate_with_warning(self, parse):
        draft = parse("Question 1: Match\n1. Paris\n2. Tokyo\n3. Rome\na. France\nb. Japan")
        assert [o.text for o in draft.options] == ["Paris", "France", "Tokyo", "Japan"]
        assert [w.code for w in draft.warnings] == ["matching_truncated"]

    def test_pair_lines(self, parse):
        draft = parse("1. Match the capitals\nParis -> France\nTokyo | Japan")
        assert draft.title == "Match the capitals"
        assert [o.text for o in draft.options] == ["Paris", "France", "Tokyo", "Japan"]


class TestFillBlankParser:
    """Blank stays in the stem; answer from parentheses, answer line or key."""

    def test_parenthesized_answer(self, parse):
        draft = parse("1. The capital of Vietnam is ____ (Hanoi).")
        assert draft.title == "The capital of Vietnam is ____."
        assert draft.options[0].text == "Hanoi"
        assert draft.options[0].is_correct
        assert not draft.pending_key_lookup

    def test_answer_line(self, parse):
        draft = parse("1. The capital of Vietnam is ____.\nAnswer: Hanoi")
        assert draft.title == "The capital of Vietnam is ____."
        assert draft.options[0].text == "Hanoi"

    def test_variants_kept_as_one_blob(self, parse):
        draft = parse("1. Greeting: ____ (hello|hi)")
        assert draft.options[0].text == "hello|hi"

    def test_no_answer_is_pending(self, parse):
        draft = parse("3. The capital of Vietnam is ____.")
        assert draft.options[0].text == ""
        assert draft.options[0].is_correct
        assert draft.pending_key_lookup

    def test_split_inline_answer(self, markers):
        assert split_inline_answer("x ___ (y) z", markers) == ("x ___ z", "y")
        assert split_inline_answer("x ___ z", markers) == ("x ___ z", None)


class TestUnknownParser:
    """Unclassified blocks keep their stem."""

    def test_unknown_keeps_title(self, parse):
        draft = parse("1. Explain photosynthesis.")
        assert draft.type is QuestionType.UNKNOWN
        assert draft.title == "Explain photosynthesis."
        assert [w.code for w in draft.warnings] == ["unclassified"]
