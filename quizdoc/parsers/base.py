"""
Base Block Parser.

Provides the abstract base for the per-type block parsers and a registry
that maps each QuestionType to the parser handling it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import ClassVar

from loguru import logger

from ..classifier import BlockLayout, Classification, LineMark
from ..markers import MarkerConfig
from ..models import (
    ClassificationWarning,
    ImageHandle,
    ParsedOption,
    ParsedQuestion,
    QuestionType,
)


# =============================================================================
# Draft Question
# =============================================================================


@dataclass(frozen=True)
class DraftQuestion:
    """
    A parsed question before answer-key resolution and sanitization.

    `pending_key_lookup` marks questions whose correctness (choice) or
    answer text (fill-in-blank) must come from the answer key. The flag
    never leaves the pipeline: `to_question()` drops it.
    """
    number: int
    type: QuestionType
    title: str
    content: str = ""
    options: tuple[ParsedOption, ...] = ()
    image: ImageHandle | None = None
    pending_key_lookup: bool = False
    warnings: tuple[ClassificationWarning, ...] = ()

    def evolve(self, **changes) -> DraftQuestion:
        return replace(self, **changes)

    def warn(self, code: str, message: str) -> DraftQuestion:
        warning = ClassificationWarning(question_number=self.number, code=code, message=message)
        return replace(self, warnings=self.warnings + (warning,))

    def to_question(self) -> ParsedQuestion:
        return ParsedQuestion(
            id="",
            title=self.title,
            content=self.content,
            type=self.type,
            options=self.options,
            number=self.number,
            image_ref=self.image.ref_id if self.image else None,
        )


# =============================================================================
# Parser Registry (Plugin Pattern)
# =============================================================================


class ParserRegistry:
    """
    Registry of block parsers keyed by question type.

    Example:
        @ParserRegistry.register(QuestionType.MATCHING)
        class MatchingParser(BlockParser):
            ...

        parser = ParserRegistry.create(QuestionType.MATCHING, markers)
    """

    _parsers: ClassVar[dict[QuestionType, type[BlockParser]]] = {}

    @classmethod
    def register(cls, *question_types: QuestionType):
        """Decorator to register a parser class for one or more types."""

        def decorator(parser_class: type[BlockParser]):
            for question_type in question_types:
                cls._parsers[question_type] = parser_class
            parser_class.handles = question_types
            logger.debug(
                f"Registered parser: {', '.join(t.value for t in question_types)} -> {parser_class.__name__}"
            )
            return parser_class

        return decorator

    @classmethod
    def get(cls, question_type: QuestionType) -> type[BlockParser]:
        if question_type not in cls._parsers:
            raise KeyError(f"No parser registered for question type: {question_type.value}")
        return cls._parsers[question_type]

    @classmethod
    def create(cls, question_type: QuestionType, markers: MarkerConfig) -> BlockParser:
        return cls.get(question_type)(markers)

    @classmethod
    def list_parsers(cls) -> dict[QuestionType, type[BlockParser]]:
        return dict(cls._parsers)


# =============================================================================
# Base Parser
# =============================================================================


class BlockParser(ABC):
    """
    Abstract base class for block parsers.

    A parser turns one classified block into a DraftQuestion: a title,
    optional content, and the ordered option list for its type.
    """

    handles: ClassVar[tuple[QuestionType, ...]] = ()

    def __init__(self, markers: MarkerConfig):
        self.markers = markers

    @abstractmethod
    def parse(self, verdict: Classification) -> DraftQuestion:
        ...

    def build_stem(
        self,
        layout: BlockLayout,
        marks: list[LineMark],
    ) -> tuple[str, str, ImageHandle | None]:
        """
        Title, content and stem image from the header and stem lines.

        The header text is the title; the following stem lines become the
        content. When the header carries only the number, the first stem
        line is promoted to title.
        """
        title = layout.header_text
        texts = [mark.text for mark in marks if mark.kind != "image" and mark.text]
        if not title and texts:
            title, texts = texts[0], texts[1:]

        images = list(layout.block.header.images)
        for mark in marks:
            images.extend(mark.line.images)
        return title, "\n".join(texts), images[0] if images else None


def first_image_ref(images: tuple[ImageHandle, ...]) -> str | None:
    return images[0].ref_id if images else None
