"""
Answer Key Location and Resolution.

A document may end with an answer table:

    Answer key
    1. B    2. A, C    3. Hanoi

or, without a heading, a dense trailing run of `<number><sep><letter>`
lines. The key is cut off before segmentation so its lines are not read
as questions, and applied after every block has been parsed.

Resolution only fills what the block left open: inline markers always win
over the key, and numbers the key does not list stay unresolved.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from .markers import KeyEntry, MarkerConfig
from .models import LogicalLine, ParsedOption, QuestionType
from .parsers.base import DraftQuestion


@dataclass
class AnswerKey:
    """Question number -> answer entry."""

    entries: dict[int, KeyEntry] = field(default_factory=dict)
    line_count: int = 0  # Source lines consumed by the key section

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, number: int) -> bool:
        return number in self.entries

    def get(self, number: int) -> KeyEntry | None:
        return self.entries.get(number)

    def add(self, entry: KeyEntry) -> None:
        """Add an entry; a number listed twice accumulates its letters."""
        existing = self.entries.get(entry.number)
        if existing is None:
            self.entries[entry.number] = entry
            return
        letters = tuple(dict.fromkeys(existing.letters + entry.letters))
        token = ", ".join(letters) if letters else f"{existing.token}|{entry.token}"
        self.entries[entry.number] = KeyEntry(number=entry.number, token=token, letters=letters)


# =============================================================================
# Location
# =============================================================================


def locate_answer_key(
    lines: Sequence[LogicalLine],
    markers: MarkerConfig,
    min_entries: int = 3,
) -> tuple[list[LogicalLine], AnswerKey | None]:
    """
    Split `lines` into the question body and a trailing answer key.

    A heading ("Answer key", "Đáp án") followed only by key lines wins;
    otherwise a trailing run of letter-entry lines holding at least
    `min_entries` entries counts as a key.

    Returns:
        The lines before the key section, and the key (None if absent).
    """
    lines = list(lines)

    heading = _find_key_heading(lines, markers)
    if heading is not None:
        start, entries = heading
        key = AnswerKey()
        for entry in entries:
            key.add(entry)
        key.line_count = len(lines) - start
        logger.debug(f"Answer key heading at line {start}: {len(key)} entries")
        return lines[:start], key

    key = AnswerKey()
    start = len(lines)
    for index in range(len(lines) - 1, -1, -1):
        text = lines[index].text
        if not text.strip():
            continue
        entries = markers.parse_key_letters(text)
        if entries is None:
            break
        for entry in entries:
            key.add(entry)
        start = index

    if key.entries and len(key) >= min_entries:
        key.line_count = len(lines) - start
        logger.debug(f"Trailing answer table at line {start}: {len(key)} entries")
        return lines[:start], key
    return lines, None


def _find_key_heading(
    lines: list[LogicalLine],
    markers: MarkerConfig,
) -> tuple[int, list[KeyEntry]] | None:
    """
    First answer-key heading whose section runs to the end of the document.

    A heading only opens the key when every non-blank line after it is a
    key line, so a label like "Answers:" above a question's options is
    left in the body.
    """
    for index, line in enumerate(lines):
        if markers.match_key_heading(line.text) is None:
            continue
        entries = _key_section(lines[index:], markers)
        if entries:
            return index, entries
        logger.debug(f"Key heading at line {index} is followed by question text, ignoring")
    return None


def _key_section(lines: list[LogicalLine], markers: MarkerConfig) -> list[KeyEntry] | None:
    """Entries of a key section starting at a heading; None if any line is not a key line."""
    entries: list[KeyEntry] = []
    for line in lines:
        text = line.text
        if not text.strip():
            continue
        rest = markers.match_key_heading(text)
        if rest is not None:
            if not rest.strip():
                continue
            parsed = markers.parse_key_letters(rest)
            if parsed is None:
                return None
            entries.extend(parsed)
            continue
        parsed = _parse_key_line(text, markers)
        if not parsed:
            return None
        if any(not entry.letters and markers.has_blank(entry.token) for entry in parsed):
            # A numbered line with a blank is a question
            return None
        entries.extend(parsed)
    return entries


def _parse_key_line(text: str, markers: MarkerConfig) -> list[KeyEntry]:
    if not text.strip():
        return []
    entries = markers.parse_key_letters(text)
    if entries is not None:
        return entries
    entry = markers.parse_key_text(text)
    return [entry] if entry is not None else []


# =============================================================================
# Resolution
# =============================================================================


class AnswerKeyResolver:
    """
    Apply an answer key to parsed drafts.

    Runs once over the full draft set, after the parse barrier.
    """

    def resolve(self, drafts: Sequence[DraftQuestion], key: AnswerKey | None) -> list[DraftQuestion]:
        resolved = [self._resolve_one(draft, key) for draft in drafts]

        if key is not None:
            numbers = {draft.number for draft in drafts}
            unused = sorted(set(key.entries) - numbers)
            if unused:
                logger.debug(f"Answer key entries without a question: {unused}")
        return resolved

    def _resolve_one(self, draft: DraftQuestion, key: AnswerKey | None) -> DraftQuestion:
        entry = key.get(draft.number) if key is not None else None

        if draft.type.is_choice:
            return self._resolve_choice(draft, entry)
        if draft.type is QuestionType.FILL_IN_BLANK:
            return self._resolve_fill(draft, entry)
        return draft

    def _resolve_choice(self, draft: DraftQuestion, entry: KeyEntry | None) -> DraftQuestion:
        if not draft.pending_key_lookup:
            if entry is not None:
                inline = {o.key.upper() for o in draft.options if o.is_correct and o.key}
                if inline != set(_wanted_keys(draft.options, entry)):
                    draft = draft.warn(
                        "answer_key_conflict",
                        f"Answer key says {entry.token!r}; inline marker kept",
                    )
            return draft

        wanted = set(_wanted_keys(draft.options, entry)) if entry is not None else set()
        if not wanted:
            draft = draft.evolve(pending_key_lookup=False)
            return draft.warn("missing_answer", "No inline marker and no usable answer key entry")

        options = tuple(
            ParsedOption(
                text=option.text,
                key=option.key,
                is_correct=bool(option.key) and option.key.upper() in wanted,
                image_ref=option.image_ref,
                image_url=option.image_url,
            )
            for option in draft.options
        )
        return draft.evolve(options=options, pending_key_lookup=False)

    def _resolve_fill(self, draft: DraftQuestion, entry: KeyEntry | None) -> DraftQuestion:
        current = draft.options[0].text if draft.options else ""
        if not draft.pending_key_lookup:
            if entry is not None and entry.token.casefold() != current.casefold():
                draft = draft.warn(
                    "answer_key_conflict",
                    f"Answer key says {entry.token!r}; inline answer kept",
                )
            return draft

        if entry is None:
            draft = draft.evolve(pending_key_lookup=False)
            return draft.warn("missing_answer", "No inline answer and no answer key entry")

        option = ParsedOption(text=entry.token, is_correct=True)
        return draft.evolve(options=(option,), pending_key_lookup=False)


def _wanted_keys(options: Sequence[ParsedOption], entry: KeyEntry) -> list[str]:
    """Upper-cased option keys an entry points at, by letter or by option text."""
    keys = {o.key.upper() for o in options if o.key}
    if entry.letters:
        return [letter for letter in entry.letters if letter in keys]
    wanted = entry.token.strip().casefold()
    return [o.key.upper() for o in options if o.key and o.text.strip().casefold() == wanted]
