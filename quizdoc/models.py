"""
Quiz Import Data Models.

These models represent the data flowing through the import pipeline,
from the extracted run stream down to storage-ready questions.

Every model is immutable: a stage produces new values instead of
editing what an earlier stage handed it, so any stage can be replayed
on its recorded input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


# =============================================================================
# Run Stream Models
# =============================================================================


@dataclass(frozen=True)
class ImageHandle:
    """
    Reference to an image embedded in the source document.

    The bytes are optional: a run stream built from plain text or from a
    document whose media could not be read still carries the reference.
    """
    ref_id: str
    data: bytes | None = field(default=None, repr=False)
    filename: str | None = None


@dataclass(frozen=True)
class TextRun:
    """A span of text sharing one set of formatting flags."""
    text: str
    bold: bool = False
    underline: bool = False
    italic: bool = False
    colored: bool = False  # Non-black font color
    is_image_ref: bool = False
    image_ref: ImageHandle | None = None

    @property
    def emphasized(self) -> bool:
        """Formatting that authors use to mark the correct answer."""
        return self.bold or self.underline or self.colored


@dataclass(frozen=True)
class ParagraphBreak:
    """Marker separating two paragraphs in a run stream."""


PARAGRAPH_BREAK = ParagraphBreak()

RunStreamItem = Union[TextRun, ParagraphBreak]


@dataclass(frozen=True)
class LogicalLine:
    """
    One paragraph of the source document.

    `text` is the plain-text projection of the runs. Image runs contribute
    no characters, so character offsets into `text` map back onto the
    text runs in order.
    """
    position: int
    runs: tuple[TextRun, ...] = ()

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs if not run.is_image_ref)

    @property
    def images(self) -> tuple[ImageHandle, ...]:
        return tuple(
            run.image_ref for run in self.runs
            if run.is_image_ref and run.image_ref is not None
        )

    @property
    def is_blank(self) -> bool:
        return not self.text.strip() and not self.images

    @property
    def is_image_only(self) -> bool:
        return not self.text.strip() and bool(self.images)

    def emphasis_mask(self) -> list[bool]:
        """Per-character emphasis flags aligned with `text`."""
        mask: list[bool] = []
        for run in self.runs:
            if run.is_image_ref:
                continue
            mask.extend([run.emphasized] * len(run.text))
        return mask

    def is_emphasized_from(self, start: int) -> bool:
        """
        True when every visible character from `start` onward sits in an
        emphasized run. Whitespace and punctuation are not considered.
        """
        text = self.text
        mask = self.emphasis_mask()
        seen = False
        for index in range(max(start, 0), len(text)):
            char = text[index]
            if not char.isalnum():
                continue
            seen = True
            if not mask[index]:
                return False
        return seen


@dataclass(frozen=True)
class QuestionBlock:
    """
    The lines belonging to one question.

    Attributes:
        index: Question number as written in the source (1-based).
        lines: Lines of the block, header line first.
        stem_offset: Character offset in the header line where the stem
            text starts (after the question number marker).
    """
    index: int
    lines: tuple[LogicalLine, ...]
    stem_offset: int = 0

    @property
    def header(self) -> LogicalLine:
        return self.lines[0]

    @property
    def header_text(self) -> str:
        return self.header.text[self.stem_offset:].strip()

    @property
    def body(self) -> tuple[LogicalLine, ...]:
        return self.lines[1:]


# =============================================================================
# Question Models
# =============================================================================


class QuestionType(str, Enum):
    """Question types produced by the classifier."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MATCHING = "MATCHING"
    FILL_IN_BLANK = "FILL_IN_BLANK"
    UNKNOWN = "UNKNOWN"  # Never present in sanitized output

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)


@dataclass(frozen=True)
class ParsedOption:
    """
    A single option of a question.

    MATCHING questions store pairs as consecutive options (left, right);
    FILL_IN_BLANK stores the accepted answer text in its only option.
    """
    text: str
    key: str | None = None
    is_correct: bool = False
    image_ref: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class ParsedQuestion:
    """A question as handed to storage."""
    id: str
    title: str
    type: QuestionType
    options: tuple[ParsedOption, ...] = ()
    content: str = ""
    order: int = 0
    number: int | None = None  # Number printed in the source document
    image_ref: str | None = None
    image_url: str | None = None

    @property
    def correct_count(self) -> int:
        return sum(1 for option in self.options if option.is_correct)

    @property
    def pairs(self) -> list[tuple[ParsedOption, ParsedOption]]:
        """Matching pairs (left, right); empty for other types."""
        if self.type is not QuestionType.MATCHING:
            return []
        return [
            (self.options[i], self.options[i + 1])
            for i in range(0, len(self.options) - 1, 2)
        ]


# =============================================================================
# Diagnostics
# =============================================================================


@dataclass(frozen=True)
class ClassificationWarning:
    """Non-fatal condition attached to one question."""
    question_number: int | None
    code: str
    message: str

    def __str__(self) -> str:
        where = f"question {self.question_number}" if self.question_number is not None else "document"
        return f"[{self.code}] {where}: {self.message}"


@dataclass(frozen=True)
class DroppedQuestion:
    """A question removed by the sanitizer, with the reason."""
    question: ParsedQuestion
    reason: str


# =============================================================================
# Pipeline Output
# =============================================================================


@dataclass(frozen=True)
class ExtractedImage:
    """Image bytes ready for upload by an object storage collaborator."""
    ref_id: str
    data: bytes = field(repr=False)
    content_type: str
    suggested_key: str


@dataclass
class ImportResult:
    """Result of running the import pipeline on one document."""

    questions: list[ParsedQuestion] = field(default_factory=list)
    dropped: list[DroppedQuestion] = field(default_factory=list)
    warnings: list[ClassificationWarning] = field(default_factory=list)
    images: list[ExtractedImage] = field(default_factory=list)

    # Counts
    lines_normalized: int = 0
    blocks_segmented: int = 0

    @property
    def questions_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for question in self.questions:
            counts[question.type.value] = counts.get(question.type.value, 0) + 1
        return counts

    @property
    def has_issues(self) -> bool:
        return bool(self.dropped or self.warnings)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        from .render import question_to_dict

        return {
            "questions": [question_to_dict(q) for q in self.questions],
            "dropped": [
                {"question": question_to_dict(d.question), "reason": d.reason}
                for d in self.dropped
            ],
            "warnings": [
                {
                    "questionNumber": w.question_number,
                    "code": w.code,
                    "message": w.message,
                }
                for w in self.warnings
            ],
            "images": [
                {
                    "refId": image.ref_id,
                    "contentType": image.content_type,
                    "suggestedKey": image.suggested_key,
                    "size": len(image.data),
                }
                for image in self.images
            ],
            "stats": {
                "linesNormalized": self.lines_normalized,
                "blocksSegmented": self.blocks_segmented,
                "questionsByType": self.questions_by_type,
            },
        }
