"""
Localized Marker Configuration.

Every word and glyph the pipeline recognizes (question words, answer-key
headings, multi-select labels, true/false words, blank tokens) lives in a
MarkerConfig value that is passed into the pipeline at construction, so the
same core can run against several localizations side by side.

This module also holds the line-level scanners shared by the segmenter,
the classifier and the block parsers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ListStyle = Literal["digit", "upper", "lower"]


# =============================================================================
# Scan Results
# =============================================================================


@dataclass(frozen=True)
class HeaderMatch:
    """A question-number marker at the start of a line."""
    number: int
    stem_offset: int
    delimiter: str  # ".", ")", ":", "-" or "" (whitespace only)
    worded: bool  # Preceded by a localized question word


@dataclass(frozen=True)
class ListItem:
    """A line starting with an option or list marker (A. / b) / 1)...)."""
    style: ListStyle
    key: str
    text: str
    text_offset: int  # Where `text` starts in the line
    starred: bool  # Leading asterisk before or after the marker


@dataclass(frozen=True)
class KeyEntry:
    """One `<number><separator><answer>` entry of an answer key."""
    number: int
    token: str
    letters: tuple[str, ...] = ()  # Option letters; empty for text answers


# =============================================================================
# Marker Configuration
# =============================================================================


class MarkerConfig(BaseModel):
    """
    Recognized marker strings for one or more localizations.

    Example:
        markers = MarkerConfig.english()
        markers.match_header("Question 3: Pick one")
    """

    model_config = ConfigDict(frozen=True)

    question_words: tuple[str, ...] = Field(
        default=("Question", "Q"),
        description="Words that may precede a question number",
    )
    answer_key_headings: tuple[str, ...] = Field(
        default=("Answer key", "Answer keys", "Answers", "Key"),
        description="Headings that open a trailing answer-key section",
    )
    answer_labels: tuple[str, ...] = Field(
        default=("Answer", "Ans", "Correct answer"),
        description="Labels of an inline answer line inside a question",
    )
    multi_select_patterns: tuple[str, ...] = Field(
        default=(
            r"select\s+all\s+that\s+apply",
            r"choose\s+(?:\d+|two|three|all)\s+(?:correct\s+)?answers?",
            r"(?:more\s+than\s+one|multiple)\s+correct\s+answers?",
        ),
        description="Regexes for instructions announcing several correct options",
    )
    multi_select_label: str = Field(
        default="Select all that apply",
        description="Label written when rendering a multiple-choice question",
    )
    true_words: tuple[str, ...] = ("True", "Yes")
    false_words: tuple[str, ...] = ("False", "No")
    option_letters: str = Field(
        default="ABCDEFGH",
        description="Upper-case letters accepted as option markers",
    )
    blank_min_underscores: int = Field(default=3, ge=2)
    blank_tokens: tuple[str, ...] = Field(
        default=("…", "..."),
        description="Ellipsis tokens accepted as a blank marker",
    )

    # ----------------------------------------------------------------
    # Presets
    # ----------------------------------------------------------------

    @classmethod
    def english(cls, **overrides) -> MarkerConfig:
        return cls(**overrides)

    @classmethod
    def vietnamese(cls, **overrides) -> MarkerConfig:
        values = dict(
            question_words=("Câu hỏi", "Câu", "Bài"),
            answer_key_headings=("Đáp án", "Bảng đáp án", "Đáp án tham khảo"),
            answer_labels=("Đáp án", "Đáp án đúng", "Trả lời"),
            multi_select_patterns=(
                r"chọn\s*\d+\s*(?:đáp\s*án|phương\s*án)(?:\s*đúng)?",
                r"chọn\s+(?:các|nhiều)\s+(?:đáp\s*án|phương\s*án)(?:\s*đúng)?",
            ),
            multi_select_label="Chọn các đáp án đúng",
            true_words=("Đúng", "Có"),
            false_words=("Sai", "Không"),
            option_letters="ABCDĐEFGH",
        )
        values.update(overrides)
        return cls(**values)

    @classmethod
    def combined(cls, **overrides) -> MarkerConfig:
        """English and Vietnamese markers together."""
        en, vi = cls.english(), cls.vietnamese()
        values = dict(
            question_words=en.question_words + vi.question_words,
            answer_key_headings=en.answer_key_headings + vi.answer_key_headings,
            answer_labels=en.answer_labels + vi.answer_labels,
            multi_select_patterns=en.multi_select_patterns + vi.multi_select_patterns,
            true_words=en.true_words + vi.true_words,
            false_words=en.false_words + vi.false_words,
            option_letters=vi.option_letters,
        )
        values.update(overrides)
        return cls(**values)

    @classmethod
    def for_locale(cls, locale: str, **overrides) -> MarkerConfig:
        presets = {"en": cls.english, "vi": cls.vietnamese, "all": cls.combined}
        if locale not in presets:
            raise ValueError(
                f"Unknown marker locale: {locale!r} (expected one of {sorted(presets)})"
            )
        return presets[locale](**overrides)

    @property
    def patterns(self) -> MarkerPatterns:
        return compile_patterns(self)

    # ----------------------------------------------------------------
    # Scanners
    # ----------------------------------------------------------------

    def match_header(self, text: str, *, worded_only: bool = False) -> HeaderMatch | None:
        """Match a question-number marker anchored at the start of `text`."""
        match = self.patterns.worded_header.match(text)
        worded = match is not None
        if match is None and not worded_only:
            match = self.patterns.bare_header.match(text)
        if match is None:
            return None
        return HeaderMatch(
            number=int(match.group("num")),
            stem_offset=match.end(),
            delimiter=match.group("delim") or "",
            worded=worded,
        )

    def match_list_item(self, text: str) -> ListItem | None:
        match = self.patterns.list_item.match(text)
        if match is None:
            return None
        key = match.group("key")
        if key.isdigit():
            style: ListStyle = "digit"
        elif key.isupper():
            style = "upper"
        else:
            style = "lower"

        offset = match.end()
        starred = match.group("star") is not None
        if text.startswith("*", offset):
            starred = True
            offset += 1
            while offset < len(text) and text[offset].isspace():
                offset += 1
        return ListItem(
            style=style,
            key=key,
            text=text[offset:].strip(),
            text_offset=offset,
            starred=starred,
        )

    def find_blanks(self, text: str) -> list[re.Match[str]]:
        return list(self.patterns.blank.finditer(text))

    def has_blank(self, text: str) -> bool:
        return self.patterns.blank.search(text) is not None

    def find_multi_select(self, text: str) -> re.Match[str] | None:
        return self.patterns.multi_select.search(text)

    def match_answer_line(self, text: str) -> str | None:
        match = self.patterns.answer_line.match(text)
        return match.group("answer") if match else None

    def match_key_heading(self, text: str) -> str | None:
        """Return the text after an answer-key heading, or None."""
        match = self.patterns.key_heading.match(text)
        return match.group("rest") if match else None

    def match_true_false(self, text: str) -> bool | None:
        """True/False for a bare true/false word line, None otherwise."""
        word = text.strip().lstrip("*").strip().rstrip(".").strip().casefold()
        if not word:
            return None
        if word in {w.casefold() for w in self.true_words}:
            return True
        if word in {w.casefold() for w in self.false_words}:
            return False
        return None

    def parse_key_letters(self, text: str) -> list[KeyEntry] | None:
        """
        Parse a line made only of letter entries ("1.B 2.C, 3-A,D").

        Returns None when anything other than entries and separators remains.
        """
        entries: list[KeyEntry] = []
        position = 0
        for match in self.patterns.key_letter_entry.finditer(text):
            if text[position:match.start()].strip(_KEY_SEPARATORS):
                return None
            letters = tuple(
                letter.upper() for letter in re.split(r"\s*[,&+/]\s*", match.group("ans"))
            )
            entries.append(
                KeyEntry(
                    number=int(match.group("num")),
                    token=", ".join(letters),
                    letters=letters,
                )
            )
            position = match.end()
        if not entries or text[position:].strip(_KEY_SEPARATORS):
            return None
        return entries

    def parse_key_text(self, text: str) -> KeyEntry | None:
        """Parse a single `<number><separator><text>` entry."""
        match = self.patterns.key_text_entry.match(text)
        if match is None:
            return None
        return KeyEntry(number=int(match.group("num")), token=match.group("text"))


_KEY_SEPARATORS = " \t,;|"


# =============================================================================
# Compiled Patterns
# =============================================================================


@dataclass(frozen=True)
class MarkerPatterns:
    """Regexes compiled from one MarkerConfig."""
    worded_header: re.Pattern[str]
    bare_header: re.Pattern[str]
    list_item: re.Pattern[str]
    blank: re.Pattern[str]
    multi_select: re.Pattern[str]
    answer_line: re.Pattern[str]
    key_heading: re.Pattern[str]
    key_letter_entry: re.Pattern[str]
    key_text_entry: re.Pattern[str]


def _alternation(words: tuple[str, ...]) -> str:
    """Regex alternation, longest first, with inner spaces made flexible."""
    ordered = sorted({w.strip() for w in words if w.strip()}, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(part) for part in w.split()) for w in ordered)


@lru_cache(maxsize=32)
def compile_patterns(config: MarkerConfig) -> MarkerPatterns:
    letters = re.escape(config.option_letters)
    lower = re.escape(config.option_letters.lower())
    blank_tokens = [rf"_{{{config.blank_min_underscores},}}"]
    blank_tokens += [f"(?:{re.escape(token)})+" for token in config.blank_tokens if token]
    key_letter = f"[{letters}{lower}]"

    return MarkerPatterns(
        worded_header=re.compile(
            rf"^\s*(?:{_alternation(config.question_words)})\s*(?P<num>\d{{1,3}})"
            r"(?:\s*(?P<delim>[.):\-])(?!\d)|(?=\s)|$)\s*",
            re.IGNORECASE,
        ),
        bare_header=re.compile(
            r"^\s*(?P<num>\d{1,3})(?:\s*(?P<delim>[.):])(?!\d)|(?=\s)|$)\s*"
        ),
        list_item=re.compile(
            r"^\s*(?P<star>\*)?\s*\(?"
            rf"(?P<key>[{letters}]|[{lower}]|\d{{1,2}})"
            r"\s*[.)](?!\d)\s*(?=\S)"
        ),
        blank=re.compile("|".join(blank_tokens)),
        multi_select=re.compile(
            "|".join(f"(?:{p})" for p in config.multi_select_patterns), re.IGNORECASE
        ),
        answer_line=re.compile(
            rf"^\s*\(?\s*(?:{_alternation(config.answer_labels)})\s*[:：]"
            r"\s*(?P<answer>.+?)\s*\)?\s*$",
            re.IGNORECASE,
        ),
        key_heading=re.compile(
            rf"^\s*(?:{_alternation(config.answer_key_headings)})\s*[:：]?\s*(?P<rest>.*)$",
            re.IGNORECASE,
        ),
        key_letter_entry=re.compile(
            rf"(?P<num>\d{{1,3}})\s*[.):=\-]?\s*(?P<ans>{key_letter}(?:\s*[,&+/]\s*{key_letter})*)"
            r"(?=[\s,;|]|$)"
        ),
        key_text_entry=re.compile(r"^\s*(?P<num>\d{1,3})\s*[.):=\-]\s*(?P<text>\S.*?)\s*$"),
    )


# =============================================================================
# Pairing Delimiters
# =============================================================================

_PAIR_RE = re.compile(
    r"^(?P<left>\S.*?)\s*(?:->|=>|→|⟶|⇒|↔|\s[-–—]\s|\|)\s*(?P<right>\S.*)$"
)


def match_pair(text: str) -> tuple[str, str] | None:
    """Split `left -> right` (arrow, spaced dash, or bar) into its fragments."""
    match = _PAIR_RE.match(text.strip())
    if match is None:
        return None
    left, right = match.group("left").strip(), match.group("right").strip()
    if not left or not right:
        return None
    return left, right
