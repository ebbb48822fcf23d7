"""
Unit tests for MarkerConfig and the line scanners.

Run: pytest tests/unit/test_markers.py -v
"""
import pytest

from quizdoc.markers import MarkerConfig, match_pair


class TestHeaders:
    """Question-number markers anchored at line start."""

    def test_worded_header(self, markers):
        header = markers.match_header("Question 3: Pick one")
        assert header.number == 3
        assert header.worded
        assert header.delimiter == ":"
        assert "Question 3: Pick one"[header.stem_offset:] == "Pick one"

    def test_short_worded_header(self, markers):
        header = markers.match_header("Q1) What is it?")
        assert header.number == 1
        assert header.delimiter == ")"

    def test_bare_header(self, markers):
        header = markers.match_header("12. Hello")
        assert header.number == 12
        assert header.delimiter == "."
        assert not header.worded

    def test_whitespace_delimiter(self, markers):
        header = markers.match_header("3 Hello")
        assert header.number == 3
        assert header.delimiter == ""

    @pytest.mark.parametrize("text", [
        "The year 1990 was long",
        "1990 was a year",
        "3.5 is a number",
        "A. Paris",
    ])
    def test_not_a_header(self, markers, text):
        assert markers.match_header(text) is None

    def test_worded_only_skips_bare_numbers(self, markers):
        assert markers.match_header("1. Paris", worded_only=True) is None

    def test_vietnamese_header(self, vi_markers):
        header = vi_markers.match_header("Câu 2: Thủ đô của Pháp là gì?")
        assert header.number == 2
        assert header.worded

    def test_custom_question_word(self):
        custom = MarkerConfig(question_words=("Problem",))
        assert custom.match_header("Problem 4. Solve").number == 4


class TestListItems:
    """Option and list markers."""

    def test_upper_letter(self, markers):
        item = markers.match_list_item("A. Paris")
        assert item.style == "upper"
        assert item.key == "A"
        assert item.text == "Paris"
        assert not item.starred

    def test_lower_letter_keeps_case(self, markers):
        item = markers.match_list_item("b) France")
        assert item.style == "lower"
        assert item.key == "b"

    def test_digit(self, markers):
        item = markers.match_list_item("2) Tokyo")
        assert item.style == "digit"
        assert item.text == "Tokyo"

    def test_parenthesized(self, markers):
        assert markers.match_list_item("(a) first").key == "a"

    def test_star_before_marker(self, markers):
        item = markers.match_list_item("*C. x")
        assert item.starred
        assert item.text == "x"

    def test_star_after_marker(self, markers):
        item = markers.match_list_item("B. *4")
        assert item.starred
        assert item.text == "4"

    def test_word_starting_with_letter(self, markers):
        assert markers.match_list_item("Apple pie") is None


class TestBlanksAndLabels:
    """Blank markers, multi-select labels and answer lines."""

    def test_underscore_blank(self, markers):
        assert markers.has_blank("The capital is ____.")

    def test_short_underscore_run_is_not_blank(self, markers):
        assert not markers.has_blank("snake__case")

    def test_ellipsis_blank(self, markers):
        assert markers.has_blank("The capital is … .")
        assert markers.has_blank("The capital is ... .")

    def test_min_underscores_configurable(self):
        assert MarkerConfig.english(blank_min_underscores=2).has_blank("a __ b")

    def test_multi_select_label(self, markers):
        assert markers.find_multi_select("Which are primes? (Select all that apply)")

    def test_vietnamese_multi_select_label(self, vi_markers):
        assert vi_markers.find_multi_select("Chọn 2 đáp án đúng")

    def test_answer_line(self, markers):
        assert markers.match_answer_line("Answer: B") == "B"
        assert markers.match_answer_line("(Answer: Hanoi)") == "Hanoi"
        assert markers.match_answer_line("Correct answer: A, C") == "A, C"
        assert markers.match_answer_line("Answers vary") is None

    def test_true_false(self, markers, vi_markers):
        assert markers.match_true_false("True") is True
        assert markers.match_true_false("*False") is False
        assert vi_markers.match_true_false("Đúng") is True
        assert markers.match_true_false("Maybe") is None


class TestAnswerKeyLines:
    """Key headings and entries."""

    def test_heading_alone(self, markers):
        assert markers.match_key_heading("Answer key") == ""

    def test_heading_with_entries(self, markers):
        assert markers.match_key_heading("Answers: 1.A 2.B") == "1.A 2.B"

    def test_inline_answer_is_not_heading(self, markers):
        assert markers.match_key_heading("Answer: B") is None

    def test_letter_entries(self, markers):
        entries = markers.parse_key_letters("1.B 2.C, 3-A,D")
        assert [e.number for e in entries] == [1, 2, 3]
        assert [e.letters for e in entries] == [("B",), ("C",), ("A", "D")]

    def test_lowercase_letters_upper_cased(self, markers):
        assert markers.parse_key_letters("4) c")[0].letters == ("C",)

    @pytest.mark.parametrize("text", ["1. Paris", "Chapter 1", "A. 3"])
    def test_not_letter_entries(self, markers, text):
        assert markers.parse_key_letters(text) is None

    def test_text_entry(self, markers):
        entry = markers.parse_key_text("3. Hanoi")
        assert entry.number == 3
        assert entry.token == "Hanoi"


class TestPairs:
    """Pairing delimiters."""

    @pytest.mark.parametrize("text", [
        "Paris -> France",
        "Paris → France",
        "Paris | France",
        "Paris - France",
    ])
    def test_pair(self, text):
        assert match_pair(text) == ("Paris", "France")

    def test_hyphenated_word_is_not_pair(self):
        assert match_pair("well-known fact") is None


class TestPresets:
    """Locale presets."""

    def test_for_locale(self):
        assert "Câu" in MarkerConfig.for_locale("vi").question_words
        assert "Question" in MarkerConfig.for_locale("en").question_words

    def test_combined_has_both(self):
        combined = MarkerConfig.combined()
        assert "Question" in combined.question_words
        assert "Câu" in combined.question_words

    def test_unknown_locale(self):
        with pytest.raises(ValueError):
            MarkerConfig.for_locale("xx")

    def test_config_is_frozen(self, markers):
        with pytest.raises(Exception):
            markers.option_letters = "XYZ"
