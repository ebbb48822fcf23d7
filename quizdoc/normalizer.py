"""
Run Stream Normalizer.

Collapses the run stream extracted from a document (text runs with
formatting flags, inline image references and paragraph breaks) into an
ordered list of LogicalLine values.

Formatting stays on the runs: the "bold answer is the correct one"
heuristics downstream look at run granularity, not at whole lines.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from loguru import logger

from .exceptions import NormalizeError
from .models import PARAGRAPH_BREAK, LogicalLine, ParagraphBreak, RunStreamItem, TextRun

# Newlines inside a run (soft breaks, vertical tabs from Word) end the paragraph
_SOFT_BREAK_RE = re.compile(r"\r\n|[\r\n\v\f\u2028\u2029]")


def normalize_runs(items: Iterable[RunStreamItem]) -> list[LogicalLine]:
    """
    Turn a run stream into logical lines.

    Consecutive runs concatenate into one line; a paragraph break (or a
    newline inside a run) starts the next one. Empty paragraphs and
    image-only paragraphs are kept, since blank lines and pictures both
    carry meaning further down the pipeline.

    Raises:
        NormalizeError: If an item is not a run or break, a run has no
            text, or an image run carries no image.
    """
    lines: list[LogicalLine] = []
    current: list[TextRun] = []
    pending = False  # A paragraph has been opened but not yet closed

    def flush() -> None:
        nonlocal current, pending
        lines.append(LogicalLine(position=len(lines), runs=tuple(current)))
        current = []
        pending = False

    for index, item in enumerate(items):
        if isinstance(item, ParagraphBreak):
            flush()
            continue

        if not isinstance(item, TextRun):
            raise NormalizeError(f"Item {index} is not a text run: {type(item).__name__}")
        if not isinstance(item.text, str):
            raise NormalizeError(f"Run {index} has no text (got {type(item.text).__name__})")

        if item.is_image_ref:
            if item.image_ref is None:
                raise NormalizeError(f"Run {index} is an image reference without an image")
            current.append(item)
            pending = True
            continue

        pieces = _SOFT_BREAK_RE.split(item.text.replace("\u00a0", " "))
        for position, piece in enumerate(pieces):
            if position > 0:
                flush()
            if piece:
                current.append(_with_text(item, piece))
            pending = True

    if pending or current:
        flush()

    logger.debug(f"Normalized run stream into {len(lines)} lines")
    return lines


def runs_from_plain_text(text: str) -> list[RunStreamItem]:
    """
    Build a run stream from plain text, one paragraph per line.

    Plain text has no formatting, so only `*` markers and answer keys can
    carry correctness.
    """
    if not isinstance(text, str):
        raise NormalizeError(f"Plain text input must be a string, got {type(text).__name__}")

    items: list[RunStreamItem] = []
    for index, line in enumerate(text.replace("\r\n", "\n").split("\n")):
        if index > 0:
            items.append(PARAGRAPH_BREAK)
        if line:
            items.append(TextRun(text=line))
    return items


def normalize_text(text: str) -> list[LogicalLine]:
    """Shortcut for `normalize_runs(runs_from_plain_text(text))`."""
    return normalize_runs(runs_from_plain_text(text))


def _with_text(run: TextRun, text: str) -> TextRun:
    if text == run.text:
        return run
    return TextRun(
        text=text,
        bold=run.bold,
        underline=run.underline,
        italic=run.italic,
        colored=run.colored,
    )
