"""
Unit tests for the rule-ordered question type classifier.

Run: pytest tests/unit/test_classifier.py -v
"""
import pytest

from quizdoc.classifier import QuestionClassifier, analyze_block
from quizdoc.markers import KeyEntry
from quizdoc.models import PARAGRAPH_BREAK, QuestionType, TextRun
from quizdoc.normalizer import normalize_runs, normalize_text
from quizdoc.segmenter import QuestionSegmenter


@pytest.fixture
def classifier(markers):
    return QuestionClassifier(markers)


@pytest.fixture
def block_of(markers):
    segmenter = QuestionSegmenter(markers)

    def build(text_or_runs):
        if isinstance(text_or_runs, str):
            lines = normalize_text(text_or_runs)
        else:
            lines = normalize_runs(text_or_runs)
        return segmenter.segment(lines)[0]

    return build


class TestRuleOrder:
    """Each rule in priority order."""

    def test_fill_in_blank(self, classifier, block_of):
        verdict = classifier.classify(block_of("3. The capital of Vietnam is ____."))
        assert verdict.type is QuestionType.FILL_IN_BLANK

    def test_blank_with_options_is_choice(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. 2 + ___ = 4\nA. 1\nB. *2"))
        assert verdict.type is QuestionType.SINGLE_CHOICE

    def test_matching_adjacent_lists(self, classifier, block_of):
        text = "Question 1: Match\n1. Paris\n2. Tokyo\na. France\nb. Japan"
        verdict = classifier.classify(block_of(text))
        assert verdict.type is QuestionType.MATCHING
        assert verdict.matching.columns is not None

    def test_matching_pair_delimiters(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Match\nParis -> France\nTokyo -> Japan"))
        assert verdict.type is QuestionType.MATCHING
        assert verdict.matching.columns is None

    def test_single_choice(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. What is 2+2?\nA. 3\nB. *4\nC. 5"))
        assert verdict.type is QuestionType.SINGLE_CHOICE
        assert verdict.correct_keys == ("B",)

    def test_multiple_choice_from_markers(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Primes?\nA. *2\nB. *3\nC. 4"))
        assert verdict.type is QuestionType.MULTIPLE_CHOICE
        assert verdict.correct_keys == ("A", "B")

    def test_multiple_choice_from_label(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Primes? (Select all that apply)\nA. 2\nB. 3\nC. 4"))
        assert verdict.type is QuestionType.MULTIPLE_CHOICE
        assert verdict.layout.header_text == "Primes?"

    def test_multiple_choice_from_answer_key(self, classifier, block_of):
        block = block_of("1. Primes?\nA. 2\nB. 3\nC. 4")
        entry = KeyEntry(number=1, token="A, B", letters=("A", "B"))
        assert classifier.classify(block, entry).type is QuestionType.MULTIPLE_CHOICE

    def test_unknown(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Explain photosynthesis."))
        assert verdict.type is QuestionType.UNKNOWN


class TestCorrectnessMarkers:
    """Inline correctness from formatting, asterisks and answer lines."""

    def test_bold_option(self, classifier, block_of):
        runs = [
            TextRun("1. Capital of France?"), PARAGRAPH_BREAK,
            TextRun("A. Lyon"), PARAGRAPH_BREAK,
            TextRun("B. "), TextRun("Paris", bold=True), PARAGRAPH_BREAK,
            TextRun("C. Nice"),
        ]
        assert classifier.classify(block_of(runs)).correct_keys == ("B",)

    def test_colored_option(self, classifier, block_of):
        runs = [
            TextRun("1. Capital of France?"), PARAGRAPH_BREAK,
            TextRun("A. Lyon"), PARAGRAPH_BREAK,
            TextRun("B. Paris", colored=True),
        ]
        assert classifier.classify(block_of(runs)).correct_keys == ("B",)

    def test_partially_bold_option_is_not_marked(self, classifier, block_of):
        runs = [
            TextRun("1. Capital?"), PARAGRAPH_BREAK,
            TextRun("A. "), TextRun("Paris", bold=True), TextRun(" or Lyon"), PARAGRAPH_BREAK,
            TextRun("B. Nice"),
        ]
        assert classifier.classify(block_of(runs)).correct_keys == ()

    def test_emphasis_on_every_option_is_styling(self, classifier, block_of):
        runs = [
            TextRun("1. Capital?"), PARAGRAPH_BREAK,
            TextRun("A. Paris", bold=True), PARAGRAPH_BREAK,
            TextRun("B. Nice", bold=True),
        ]
        verdict = classifier.classify(block_of(runs))
        assert verdict.type is QuestionType.SINGLE_CHOICE
        assert verdict.correct_keys == ()

    def test_answer_line(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Capital?\nA. Paris\nB. Nice\nAnswer: A"))
        assert verdict.correct_keys == ("A",)

    def test_answer_line_by_option_text(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Capital?\nA. Paris\nB. Nice\nAnswer: nice"))
        assert verdict.correct_keys == ("B",)


class TestTrueFalse:
    """Bare true/false lines act as two options."""

    def test_true_false_options(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. The earth is flat.\nTrue\n*False"))
        assert verdict.type is QuestionType.SINGLE_CHOICE
        slots = verdict.layout.choice_slots()
        assert [(s.key, s.text) for s in slots] == [("A", "True"), ("B", "False")]
        assert verdict.correct_keys == ("B",)

    def test_false_listed_first_is_reordered(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Water is wet.\n*False\nTrue"))
        slots = verdict.layout.choice_slots()
        assert [s.text for s in slots] == ["True", "False"]
        assert verdict.correct_keys == ("B",)


class TestLayout:
    """Shared line analysis."""

    def test_statement_list_before_options_stays_in_stem(self, markers, block_of):
        text = "Question 1: Which statements are true?\n1. Sky is blue\n2. Grass is red\nA. 1 only\nB. 2 only\nAnswer: A"
        layout = analyze_block(block_of(text), markers)
        assert [run.style for run in layout.runs] == ["digit", "upper"]
        assert [m.text for m in layout.stem_marks()] == ["1. Sky is blue", "2. Grass is red"]

    def test_statement_list_with_answer_is_not_matching(self, classifier, block_of):
        text = "Question 1: Which statements are true?\n1. Sky is blue\n2. Grass is red\nA. 1 only\nB. 2 only\nAnswer: A"
        verdict = classifier.classify(block_of(text))
        assert verdict.type is QuestionType.SINGLE_CHOICE
        assert verdict.correct_keys == ("A",)

    def test_continuation_lines_join_option(self, classifier, block_of):
        verdict = classifier.classify(block_of("1. Pick\nA. first part\nstill first\nB. *second"))
        slots = verdict.layout.choice_slots()
        assert slots[0].text == "first part still first"
        assert slots[1].starred
