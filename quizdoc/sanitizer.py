"""
Question Sanitizer.

Final pass over parsed questions before storage:

- Cleans every text field (NFC, control and zero-width characters removed,
  whitespace collapsed; content keeps single line breaks).
- Enforces the per-type option invariants, coercing where possible and
  dropping (with a reason) where not.
- Assigns order 0..n-1 and ids q-1..q-n to the surviving questions.

The pass is idempotent, so stored questions can be sanitized again on
re-import without drifting.
"""

from __future__ import annotations

import string
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from loguru import logger

from .models import (
    ClassificationWarning,
    DroppedQuestion,
    ParsedOption,
    ParsedQuestion,
    QuestionType,
)

# Reasons reported in DroppedQuestion.reason
DROP_UNCLASSIFIED = "unclassified"
DROP_EMPTY_TITLE = "empty title"
DROP_TOO_FEW_OPTIONS = "fewer than 2 options"
DROP_NO_CORRECT = "no correct option"
DROP_MISSING_ANSWER = "missing answer text"
DROP_TOO_FEW_PAIRS = "too few matching pairs"

FILL_VARIANT_SEPARATOR = "|"


def clean_text(text: str | None, *, multiline: bool = False) -> str:
    """
    Normalize one text field.

    With `multiline`, each line is cleaned on its own and empty lines are
    removed; otherwise all whitespace collapses to single spaces.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text)
    kept = []
    for char in text:
        if char in "\n\t":
            kept.append(char)
            continue
        category = unicodedata.category(char)
        if category == "Cf":
            continue
        if category == "Cc":
            kept.append(" ")
            continue
        kept.append(char)
    text = "".join(kept)
    if multiline:
        lines = (" ".join(line.split()) for line in text.split("\n"))
        return "\n".join(line for line in lines if line)
    return " ".join(text.split())


@dataclass
class SanitizeResult:
    """Sanitized questions plus everything removed or coerced on the way."""
    questions: list[ParsedQuestion] = field(default_factory=list)
    dropped: list[DroppedQuestion] = field(default_factory=list)
    warnings: list[ClassificationWarning] = field(default_factory=list)


class Sanitizer:
    """
    Storage-shape normalizer for ParsedQuestion lists.

    Example:
        result = Sanitizer().sanitize(questions)
        for item in result.dropped:
            print(item.reason, item.question.title)
    """

    def __init__(self, matching_min_pairs: int = 2):
        self.matching_min_pairs = max(1, matching_min_pairs)

    def sanitize(self, questions: Iterable[ParsedQuestion]) -> SanitizeResult:
        result = SanitizeResult()
        kept: list[ParsedQuestion] = []

        for question in questions:
            question = self._clean(question)
            question, reason = self._enforce(question, result.warnings)
            if reason is not None:
                result.dropped.append(DroppedQuestion(question=question, reason=reason))
                logger.info(f"Dropped question {question.number}: {reason}")
                continue
            kept.append(question)

        result.questions = [
            replace(question, order=order, id=f"q-{order + 1}")
            for order, question in enumerate(kept)
        ]
        logger.debug(
            f"Sanitized {len(result.questions)} questions "
            f"({len(result.dropped)} dropped, {len(result.warnings)} warnings)"
        )
        return result

    # ----------------------------------------------------------------
    # Text cleaning
    # ----------------------------------------------------------------

    def _clean(self, question: ParsedQuestion) -> ParsedQuestion:
        options = tuple(
            replace(
                option,
                text=clean_text(option.text),
                key=clean_text(option.key) or None,
            )
            for option in question.options
        )
        return replace(
            question,
            title=clean_text(question.title),
            content=clean_text(question.content, multiline=True),
            options=options,
        )

    # ----------------------------------------------------------------
    # Invariants
    # ----------------------------------------------------------------

    def _enforce(
        self,
        question: ParsedQuestion,
        warnings: list[ClassificationWarning],
    ) -> tuple[ParsedQuestion, str | None]:
        if question.type is QuestionType.UNKNOWN:
            return question, DROP_UNCLASSIFIED
        if not question.title:
            return question, DROP_EMPTY_TITLE

        if question.type.is_choice:
            return self._enforce_choice(question, warnings)
        if question.type is QuestionType.MATCHING:
            return self._enforce_matching(question, warnings)
        return self._enforce_fill(question)

    def _enforce_choice(
        self,
        question: ParsedQuestion,
        warnings: list[ClassificationWarning],
    ) -> tuple[ParsedQuestion, str | None]:
        options = _fill_missing_keys([o for o in question.options if _has_content(o)])
        question = replace(question, options=tuple(options))

        if len(options) < 2:
            return question, DROP_TOO_FEW_OPTIONS
        if question.correct_count == 0:
            return question, DROP_NO_CORRECT

        if question.type is QuestionType.SINGLE_CHOICE and question.correct_count > 1:
            warnings.append(
                ClassificationWarning(
                    question_number=question.number,
                    code="coerced_type",
                    message=f"{question.correct_count} correct options; stored as MULTIPLE_CHOICE",
                )
            )
            question = replace(question, type=QuestionType.MULTIPLE_CHOICE)
        return question, None

    def _enforce_matching(
        self,
        question: ParsedQuestion,
        warnings: list[ClassificationWarning],
    ) -> tuple[ParsedQuestion, str | None]:
        options = [replace(o, key=None, is_correct=False) for o in question.options]
        if len(options) % 2:
            warnings.append(
                ClassificationWarning(
                    question_number=question.number,
                    code="matching_unpaired",
                    message=f"Dropped unpaired entry {options[-1].text!r}",
                )
            )
            options = options[:-1]

        pairs = [
            (options[i], options[i + 1])
            for i in range(0, len(options), 2)
            if _has_content(options[i]) and _has_content(options[i + 1])
        ]
        question = replace(question, options=tuple(o for pair in pairs for o in pair))
        if len(pairs) < self.matching_min_pairs:
            return question, DROP_TOO_FEW_PAIRS
        return question, None

    def _enforce_fill(self, question: ParsedQuestion) -> tuple[ParsedQuestion, str | None]:
        variants = [o.text for o in question.options if o.text]
        answer = FILL_VARIANT_SEPARATOR.join(variants)
        question = replace(question, options=(ParsedOption(text=answer, is_correct=True),))
        if not answer:
            return question, DROP_MISSING_ANSWER
        return question, None


def _has_content(option: ParsedOption) -> bool:
    return bool(option.text or option.image_ref or option.image_url)


def _fill_missing_keys(options: list[ParsedOption]) -> list[ParsedOption]:
    """Give unkeyed options the first letters no other option uses."""
    used = {option.key for option in options if option.key}
    free = (letter for letter in string.ascii_uppercase if letter not in used)
    return [
        option if option.key else replace(option, key=next(free, None))
        for option in options
    ]
