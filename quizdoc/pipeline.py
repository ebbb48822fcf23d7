"""
Quiz Import Pipeline Orchestrator.

Runs the stages in order over the full output of the previous one:

    normalize -> locate answer key -> segment -> classify -> parse
        -> [barrier] -> resolve answer key -> sanitize -> collect images

Every stage is a pure function of its input. The only barrier is between
parsing and key resolution, which needs the whole parsed set. A caller
budget is checked at each stage boundary; running out raises
ImportTimeoutError and discards the stage output built so far.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Union

from loguru import logger

from .answer_key import AnswerKeyResolver, locate_answer_key
from .classifier import QuestionClassifier
from .exceptions import ImportTimeoutError
from .images import collect_images
from .markers import MarkerConfig
from .models import ImportResult, RunStreamItem
from .normalizer import normalize_runs, runs_from_plain_text
from .parsers import DraftQuestion, ParserRegistry
from .sanitizer import Sanitizer
from .segmenter import QuestionSegmenter, split_list_warnings
from .sources import DocumentSource, ImportInput

PipelineInput = Union[str, Sequence[RunStreamItem], ImportInput]


class _Deadline:
    """Monotonic wall-clock budget checked between stages."""

    def __init__(self, budget_seconds: float | None):
        self.budget_seconds = budget_seconds
        self._expires = None if budget_seconds is None else time.monotonic() + budget_seconds

    def check(self, stage: str) -> None:
        if self._expires is not None and time.monotonic() >= self._expires:
            logger.warning(f"Import budget exhausted before stage '{stage}'")
            raise ImportTimeoutError(stage, self.budget_seconds)


class QuizImportPipeline:
    """
    Quiz import pipeline.

    One instance holds configuration only; each `run()` call works on its
    own data, so concurrent imports may share an instance.

    Example:
        pipeline = QuizImportPipeline(MarkerConfig.english())
        result = pipeline.run("1. What is 2+2?\\nA. 3\\nB. *4\\nC. 5")
        result.questions[0].type  # QuestionType.SINGLE_CHOICE
    """

    def __init__(
        self,
        markers: MarkerConfig | None = None,
        *,
        answer_key_min_entries: int = 3,
        matching_min_pairs: int = 2,
        image_key_prefix: str = "quiz-images",
        budget_seconds: float | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            markers: Localized markers (defaults to English + Vietnamese)
            answer_key_min_entries: Entries a heading-less trailing table
                needs before it counts as an answer key
            matching_min_pairs: Fewest pairs a MATCHING question may keep
            image_key_prefix: Prefix of suggested image object keys
            budget_seconds: Default wall-clock budget for `run()`
        """
        self.markers = markers or MarkerConfig.combined()
        self.answer_key_min_entries = answer_key_min_entries
        self.image_key_prefix = image_key_prefix
        self.budget_seconds = budget_seconds

        self.segmenter = QuestionSegmenter(self.markers)
        self.classifier = QuestionClassifier(self.markers)
        self.resolver = AnswerKeyResolver()
        self.sanitizer = Sanitizer(matching_min_pairs=matching_min_pairs)

    @classmethod
    def from_settings(cls, settings=None, markers: MarkerConfig | None = None) -> QuizImportPipeline:
        """Build a pipeline from application settings."""
        if settings is None:
            from config import get_settings

            settings = get_settings()
        if markers is None:
            markers = MarkerConfig.for_locale(
                settings.quiz_locale,
                blank_min_underscores=settings.quiz_blank_min_underscores,
            )
        return cls(
            markers,
            answer_key_min_entries=settings.quiz_answer_key_min_entries,
            matching_min_pairs=settings.quiz_matching_min_pairs,
            image_key_prefix=settings.quiz_image_key_prefix,
            budget_seconds=settings.quiz_stage_budget_seconds,
        )

    async def run_source(self, source: DocumentSource, budget_seconds: float | None = None) -> ImportResult:
        """Acquire input from `source`, then run the pipeline on it."""
        document = await source.read()
        return self.run(document, budget_seconds=budget_seconds)

    def run(self, source: PipelineInput, budget_seconds: float | None = None) -> ImportResult:
        """
        Run every stage on one document.

        Args:
            source: Plain text, a run stream, or an ImportInput
            budget_seconds: Wall-clock budget overriding the default

        Returns:
            ImportResult with sanitized questions, dropped questions,
            warnings and extracted images

        Raises:
            NormalizeError: Malformed run stream
            NoQuestionsFoundError: No question blocks found
            ImportTimeoutError: Budget exhausted at a stage boundary
        """
        deadline = _Deadline(budget_seconds if budget_seconds is not None else self.budget_seconds)
        document = _as_input(source)

        deadline.check("normalize")
        lines = self._normalize(document)

        deadline.check("answer_key")
        body, key = locate_answer_key(lines, self.markers, self.answer_key_min_entries)

        deadline.check("segment")
        blocks = self.segmenter.segment(body)
        warnings = split_list_warnings(blocks, self.markers)

        deadline.check("classify")
        verdicts = self.classifier.classify_all(blocks, key.entries if key else None)

        deadline.check("parse")
        drafts: list[DraftQuestion] = [
            ParserRegistry.create(verdict.type, self.markers).parse(verdict)
            for verdict in verdicts
        ]

        # Barrier: key resolution needs every parsed block
        deadline.check("resolve")
        drafts = self.resolver.resolve(drafts, key)

        deadline.check("sanitize")
        sanitized = self.sanitizer.sanitize(draft.to_question() for draft in drafts)

        deadline.check("images")
        images = collect_images(sanitized.questions, document.images, self.image_key_prefix)

        warnings.extend(warning for draft in drafts for warning in draft.warnings)
        warnings.extend(sanitized.warnings)
        for warning in warnings:
            logger.warning(str(warning))

        result = ImportResult(
            questions=sanitized.questions,
            dropped=sanitized.dropped,
            warnings=warnings,
            images=images,
            lines_normalized=len(lines),
            blocks_segmented=len(blocks),
        )
        logger.info(
            f"Imported {len(result.questions)} questions from {document.name} "
            f"({len(result.dropped)} dropped, {len(result.warnings)} warnings)"
        )
        return result

    def _normalize(self, document: ImportInput):
        if document.runs is not None:
            lines = normalize_runs(document.runs)
            if any(not line.is_blank for line in lines) or document.plain_text is None:
                return lines
            logger.debug("Run stream is empty, falling back to plain text")
        return normalize_runs(runs_from_plain_text(document.plain_text or ""))


def _as_input(source: PipelineInput) -> ImportInput:
    if isinstance(source, ImportInput):
        return source
    if isinstance(source, str):
        return ImportInput.from_text(source)
    return ImportInput.from_runs(source)
