"""
Question Segmenter.

Splits the ordered lines of a document into one block per question.

A block opens at a line starting with a question number ("3.", "3)",
"Question 3:", "Câu 3 -") and runs until the next such line. Two locks
keep list items from being mistaken for question numbers:

- Worded lock: once any line uses a localized question word, only worded
  headers open blocks and bare numbered lines are list items.
- Delimiter lock: without question words, the delimiter of the first
  header (".", ")" or ":") is the only one that opens blocks, so `1)`
  options under `1.` headers stay in their question.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from .exceptions import NoQuestionsFoundError
from .markers import HeaderMatch, MarkerConfig
from .models import ClassificationWarning, LogicalLine, QuestionBlock


class QuestionSegmenter:
    """Partition logical lines into question blocks."""

    def __init__(self, markers: MarkerConfig):
        self.markers = markers

    def segment(self, lines: Sequence[LogicalLine]) -> list[QuestionBlock]:
        """
        Split `lines` into blocks in source order.

        Lines before the first header are front matter and are dropped.
        When no header exists at all, the whole document becomes a single
        block numbered 1.

        Raises:
            NoQuestionsFoundError: If the document has no visible content.
        """
        if not any(not line.is_blank for line in lines):
            raise NoQuestionsFoundError("Document contains no text to segment")

        worded = any(self._match(line, worded_only=True) for line in lines)
        delimiter = None if worded else self._locked_delimiter(lines)

        blocks: list[QuestionBlock] = []
        current: list[LogicalLine] = []
        current_header: HeaderMatch | None = None
        front_matter = 0

        for line in lines:
            header = self._match(line, worded_only=worded)
            if header is not None and delimiter is not None and header.delimiter != delimiter:
                header = None

            if header is not None:
                if current_header is not None:
                    blocks.append(self._make_block(current_header, current))
                current_header = header
                current = [line]
            elif current_header is not None:
                current.append(line)
            elif not line.is_blank:
                front_matter += 1

        if current_header is not None:
            blocks.append(self._make_block(current_header, current))

        if not blocks:
            logger.info("No question numbers found, treating document as one block")
            return [QuestionBlock(index=1, lines=tuple(_trim_leading_blank(list(lines))))]

        if front_matter:
            logger.debug(f"Discarded {front_matter} front-matter lines")
        logger.debug(
            f"Segmented {len(blocks)} blocks ({'worded' if worded else 'bare'} headers)"
        )
        return blocks

    def _locked_delimiter(self, lines: Sequence[LogicalLine]) -> str:
        """Delimiter of the first bare header; whitespace-only headers count last."""
        for line in lines:
            header = self._match(line, worded_only=False)
            if header is not None and header.delimiter:
                return header.delimiter
        return ""

    def _match(self, line: LogicalLine, *, worded_only: bool) -> HeaderMatch | None:
        return self.markers.match_header(line.text, worded_only=worded_only)

    @staticmethod
    def _make_block(header: HeaderMatch, lines: list[LogicalLine]) -> QuestionBlock:
        return QuestionBlock(
            index=header.number,
            lines=tuple(lines),
            stem_offset=header.stem_offset,
        )


def split_list_warnings(
    blocks: Sequence[QuestionBlock], markers: MarkerConfig
) -> list[ClassificationWarning]:
    """
    Flag lettered lists that were cut off from their numbered column.

    Under bare `1.` headers the left column of a matching question reads
    as question headers, leaving header-only blocks followed by a block
    whose body is nothing but a lowercase-lettered list.
    """
    warnings = []
    for previous, block in zip(blocks, blocks[1:]):
        if _has_body(previous) or markers.has_blank(previous.header_text):
            continue
        items = [markers.match_list_item(line.text) for line in block.body if not line.is_blank]
        if not items or any(item is None or item.style != "lower" or item.starred for item in items):
            continue
        warnings.append(ClassificationWarning(
            question_number=block.index,
            code="split_list",
            message=(
                "Lettered list follows header-only questions; a numbered column may have "
                "been read as questions. Use worded headers such as 'Question 1:'"
            ),
        ))
    if warnings:
        logger.debug(f"{len(warnings)} blocks look like split matching lists")
    return warnings


def _has_body(block: QuestionBlock) -> bool:
    return any(not line.is_blank for line in block.body)


def _trim_leading_blank(lines: list[LogicalLine]) -> list[LogicalLine]:
    while lines and lines[0].is_blank:
        lines = lines[1:]
    return lines
