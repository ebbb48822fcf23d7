"""
Question Type Classifier.

Assigns one QuestionType per block by checking a fixed list of rules in
priority order, first match wins:

1. FILL_IN_BLANK   - blank marker in the stem and no lettered options
2. MATCHING        - two adjacent lists in distinct numbering styles, or
                     at least two `left -> right` pair lines
3. MULTIPLE_CHOICE - option lines with more than one correctness marker
4. SINGLE_CHOICE   - option lines otherwise
5. UNKNOWN         - none of the above

The line analysis (BlockLayout) is shared with the block parsers so each
block is scanned once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from loguru import logger

from .markers import KeyEntry, ListItem, ListStyle, MarkerConfig, match_pair
from .models import ImageHandle, LogicalLine, QuestionBlock, QuestionType

MarkKind = Literal["blank", "image", "answer", "multi_label", "item", "true_false", "text"]


# =============================================================================
# Block Layout
# =============================================================================


@dataclass(frozen=True)
class LineMark:
    """What one body line of a block looks like."""
    line: LogicalLine
    kind: MarkKind
    item: ListItem | None = None
    truth: bool | None = None
    pair: tuple[str, str] | None = None
    answer: str | None = None

    @property
    def text(self) -> str:
        return self.line.text.strip()


@dataclass(frozen=True)
class ListRun:
    """Consecutive list items sharing one numbering style."""
    style: ListStyle
    indices: tuple[int, ...]  # Positions in BlockLayout.marks

    @property
    def first(self) -> int:
        return self.indices[0]

    @property
    def last(self) -> int:
        return self.indices[-1]


@dataclass(frozen=True)
class OptionSlot:
    """An option line plus the continuation lines that follow it."""
    key: str
    text: str
    starred: bool = False
    emphasized: bool = False
    images: tuple[ImageHandle, ...] = ()


@dataclass(frozen=True)
class BlockLayout:
    """Line-by-line analysis of one question block."""

    block: QuestionBlock
    marks: tuple[LineMark, ...]  # One per body line
    runs: tuple[ListRun, ...]
    header_text: str  # Header stem with any multi-select label removed
    multi_label: bool
    inline_answers: tuple[str, ...]

    @property
    def option_run(self) -> ListRun | None:
        """The last list in the block, which is where options sit."""
        return self.runs[-1] if self.runs else None

    @property
    def true_false_indices(self) -> tuple[int, ...]:
        return tuple(i for i, m in enumerate(self.marks) if m.kind == "true_false")

    @property
    def has_true_false_options(self) -> bool:
        indices = self.true_false_indices
        if self.runs or len(indices) != 2:
            return False
        return {self.marks[i].truth for i in indices} == {True, False}

    @property
    def option_start(self) -> int:
        """Index of the first option line, or len(marks) when there is none."""
        if self.option_run is not None:
            return self.option_run.first
        if self.has_true_false_options:
            return self.true_false_indices[0]
        return len(self.marks)

    @property
    def lettered_items(self) -> list[LineMark]:
        return [m for m in self.marks if m.item is not None and m.item.style != "digit"]

    @property
    def pair_indices(self) -> tuple[int, ...]:
        return tuple(
            i for i, m in enumerate(self.marks)
            if m.pair is not None and (m.item is None or m.item.style != "upper")
        )

    def stem_marks(self, upto: int | None = None) -> list[LineMark]:
        end = self.option_start if upto is None else upto
        return [m for m in self.marks[:end] if m.kind in ("text", "image", "item", "true_false")]

    def slots(self, indices: tuple[int, ...], *, stop: int | None = None) -> list[OptionSlot]:
        """
        Build option slots from list item positions.

        Text lines after an item continue it until the next list item (of
        any style) or `stop`; image lines attach to the item above them.
        """
        boundaries = {i for run in self.runs for i in run.indices}
        end = len(self.marks) if stop is None else stop
        slots: list[OptionSlot] = []
        for index in indices:
            mark = self.marks[index]
            parts = [mark.item.text if mark.item else mark.text]
            starred = bool(mark.item and mark.item.starred)
            offset = mark.item.text_offset if mark.item else 0
            emphasized = mark.line.is_emphasized_from(offset)
            images = list(mark.line.images)

            cursor = index + 1
            while cursor < end and cursor not in boundaries:
                follow = self.marks[cursor]
                if follow.kind in ("item", "true_false"):
                    break
                if follow.kind == "text":
                    text = follow.text
                    if text.startswith("*"):
                        starred = True
                        text = text.lstrip("*").strip()
                    parts.append(text)
                elif follow.kind == "image":
                    images.extend(follow.line.images)
                cursor += 1

            key = mark.item.key if mark.item else ""
            slots.append(
                OptionSlot(
                    key=key,
                    text=" ".join(p for p in parts if p),
                    starred=starred,
                    emphasized=emphasized,
                    images=tuple(images),
                )
            )
        return slots

    def choice_slots(self) -> list[OptionSlot]:
        """Option slots for a choice question (lettered list or True/False)."""
        if self.option_run is not None:
            return self.slots(self.option_run.indices)
        if self.has_true_false_options:
            # True first, then False
            marks = sorted(
                (self.marks[i] for i in self.true_false_indices),
                key=lambda mark: not mark.truth,
            )
            return [
                OptionSlot(
                    key=key,
                    text=mark.text.lstrip("*").strip(),
                    starred=mark.text.startswith("*"),
                    emphasized=mark.line.is_emphasized_from(0),
                    images=mark.line.images,
                )
                for key, mark in zip("AB", marks)
            ]
        return []


def analyze_block(block: QuestionBlock, markers: MarkerConfig) -> BlockLayout:
    """Scan every line of `block` once and record what it looks like."""
    marks: list[LineMark] = []
    multi_label = False
    inline_answers: list[str] = []

    header_text = block.header_text
    label = markers.find_multi_select(header_text)
    if label is not None:
        multi_label = True
        header_text = _remove_span(header_text, label.start(), label.end())

    for line in block.body:
        mark = _mark_line(line, markers)
        if mark.kind == "multi_label":
            multi_label = True
        elif mark.kind == "answer" and mark.answer:
            inline_answers.append(mark.answer)
        elif mark.kind == "text" and markers.find_multi_select(mark.text):
            multi_label = True
        marks.append(mark)

    runs: list[ListRun] = []
    for index, mark in enumerate(marks):
        if mark.item is None:
            continue
        if runs and runs[-1].style == mark.item.style:
            runs[-1] = ListRun(style=runs[-1].style, indices=runs[-1].indices + (index,))
        else:
            runs.append(ListRun(style=mark.item.style, indices=(index,)))

    return BlockLayout(
        block=block,
        marks=tuple(marks),
        runs=tuple(runs),
        header_text=header_text,
        multi_label=multi_label,
        inline_answers=tuple(inline_answers),
    )


def _mark_line(line: LogicalLine, markers: MarkerConfig) -> LineMark:
    text = line.text.strip()
    if line.is_blank:
        return LineMark(line=line, kind="blank")
    if line.is_image_only:
        return LineMark(line=line, kind="image")

    answer = markers.match_answer_line(text)
    if answer is not None:
        return LineMark(line=line, kind="answer", answer=answer)

    label = markers.find_multi_select(text)
    if label is not None and not _remove_span(text, label.start(), label.end()):
        return LineMark(line=line, kind="multi_label")

    item = markers.match_list_item(line.text)
    if item is not None:
        return LineMark(line=line, kind="item", item=item, pair=match_pair(item.text))

    truth = markers.match_true_false(text)
    if truth is not None:
        return LineMark(line=line, kind="true_false", truth=truth)

    return LineMark(line=line, kind="text", pair=match_pair(text))


def _remove_span(text: str, start: int, end: int) -> str:
    """Cut text[start:end] out, along with brackets that only wrapped it."""
    before, after = text[:start].rstrip(), text[end:].lstrip()
    if before.endswith(("(", "[")) and after.startswith((")", "]")):
        before, after = before[:-1].rstrip(), after[1:].lstrip()
    if not before:
        after = after.lstrip(":.;-").lstrip()
    if not after.strip(".:;!?"):
        after = ""
    return " ".join(part for part in (before, after) if part)


# =============================================================================
# Classifier
# =============================================================================


@dataclass(frozen=True)
class MatchingShape:
    """How a matching block lays out its two columns."""
    reason: str
    columns: tuple[ListRun, ListRun] | None = None  # None for pair-delimiter lines


@dataclass(frozen=True)
class Classification:
    """Classifier verdict for one block."""
    layout: BlockLayout
    type: QuestionType
    reason: str
    correct_keys: tuple[str, ...] = field(default=())  # Inline-marked option keys
    matching: MatchingShape | None = None

    @property
    def block(self) -> QuestionBlock:
        return self.layout.block


class QuestionClassifier:
    """
    Rule-ordered question type classifier.

    Example:
        classifier = QuestionClassifier(MarkerConfig.english())
        verdict = classifier.classify(block)
        verdict.type  # QuestionType.SINGLE_CHOICE
    """

    def __init__(self, markers: MarkerConfig):
        self.markers = markers

    def classify(self, block: QuestionBlock, key_entry: KeyEntry | None = None) -> Classification:
        layout = analyze_block(block, self.markers)

        if self._is_fill_in_blank(layout):
            return self._verdict(layout, QuestionType.FILL_IN_BLANK, "blank marker in stem")

        matching = self.matching_shape(layout, key_entry)
        if matching is not None:
            return Classification(
                layout=layout,
                type=QuestionType.MATCHING,
                reason=matching.reason,
                matching=matching,
            )

        slots = layout.choice_slots()
        if slots:
            correct = inline_correct_keys(layout, slots)
            if len(correct) > 1:
                return self._verdict(layout, QuestionType.MULTIPLE_CHOICE, "several inline markers", correct)
            if layout.multi_label:
                return self._verdict(layout, QuestionType.MULTIPLE_CHOICE, "multi-select label", correct)
            if not correct and key_entry is not None and len(key_entry.letters) > 1:
                return self._verdict(layout, QuestionType.MULTIPLE_CHOICE, "answer key lists several options")
            return self._verdict(layout, QuestionType.SINGLE_CHOICE, "option lines", correct)

        return self._verdict(layout, QuestionType.UNKNOWN, "no options, blank or pairs")

    def classify_all(
        self,
        blocks: list[QuestionBlock],
        key_lookup: dict[int, KeyEntry] | None = None,
    ) -> list[Classification]:
        key_lookup = key_lookup or {}
        verdicts = [self.classify(block, key_lookup.get(block.index)) for block in blocks]
        unknown = sum(1 for v in verdicts if v.type is QuestionType.UNKNOWN)
        logger.debug(f"Classified {len(verdicts)} blocks ({unknown} unknown)")
        return verdicts

    def _is_fill_in_blank(self, layout: BlockLayout) -> bool:
        if layout.lettered_items or layout.has_true_false_options:
            return False
        texts = [layout.header_text] + [m.text for m in layout.stem_marks(len(layout.marks))]
        return any(self.markers.has_blank(text) for text in texts)

    @staticmethod
    def matching_shape(layout: BlockLayout, key_entry: KeyEntry | None = None) -> MatchingShape | None:
        """Find the matching structure of a block, or None."""
        runs = layout.runs
        answered = bool(layout.inline_answers or (key_entry is not None and key_entry.letters))
        for left, right in zip(runs, runs[1:]):
            if left.style == right.style or len(left.indices) < 2 or len(right.indices) < 2:
                continue
            if right.style == "upper" and answered:
                # Statement list followed by lettered options
                continue
            between = layout.marks[left.last + 1:right.first]
            if any(m.kind == "text" for m in between):
                continue
            slots = layout.slots(left.indices) + layout.slots(right.indices)
            if any(slot.starred for slot in slots):
                continue
            if _informative(slots) and any(slot.emphasized for slot in slots):
                continue
            return MatchingShape(
                reason=f"adjacent {left.style}/{right.style} lists",
                columns=(left, right),
            )

        has_upper_options = any(run.style == "upper" and len(run.indices) >= 2 for run in runs)
        if len(layout.pair_indices) >= 2 and not has_upper_options:
            return MatchingShape(reason="pair delimiters")
        return None

    @staticmethod
    def _verdict(
        layout: BlockLayout,
        question_type: QuestionType,
        reason: str,
        correct: tuple[str, ...] = (),
    ) -> Classification:
        return Classification(layout=layout, type=question_type, reason=reason, correct_keys=correct)


def _informative(slots: list[OptionSlot]) -> bool:
    """Emphasis on every option is document styling, not an answer marker."""
    return not all(slot.emphasized for slot in slots)


def inline_correct_keys(layout: BlockLayout, slots: list[OptionSlot]) -> tuple[str, ...]:
    """Keys of options carrying an inline correctness marker."""
    use_emphasis = _informative(slots)
    keys = [
        slot.key for slot in slots
        if slot.starred or (use_emphasis and slot.emphasized)
    ]
    for answer in layout.inline_answers:
        keys.extend(_answer_keys(answer, slots))
    return tuple(dict.fromkeys(keys))


def _answer_keys(answer: str, slots: list[OptionSlot]) -> list[str]:
    """Option keys named by an inline answer line ("B", "A, C" or option text)."""
    by_key = {slot.key.upper(): slot.key for slot in slots}
    tokens = [t for t in answer.replace("&", ",").replace(";", ",").replace("/", ",").split(",")]
    tokens = [t.strip().rstrip(".").strip() for t in tokens if t.strip()]
    if tokens and all(t.upper() in by_key for t in tokens):
        return [by_key[t.upper()] for t in tokens]
    wanted = answer.strip().casefold()
    return [slot.key for slot in slots if slot.text.strip().casefold() == wanted]
