"""
Choice Parser (SINGLE_CHOICE / MULTIPLE_CHOICE).

Option text is everything after the marker, plus continuation lines.
Correctness comes from inline markers anywhere in the block (asterisk,
emphasized option text, an "Answer: B" line). Without any inline marker
every option is left incorrect and the question waits for the answer key.
"""

from __future__ import annotations

from ..classifier import Classification
from ..models import ParsedOption, QuestionType
from .base import BlockParser, DraftQuestion, ParserRegistry, first_image_ref


@ParserRegistry.register(QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)
class ChoiceParser(BlockParser):
    """Parser for lettered (or True/False) option lists."""

    def parse(self, verdict: Classification) -> DraftQuestion:
        layout = verdict.layout
        title, content, image = self.build_stem(layout, layout.stem_marks())

        slots = layout.choice_slots()
        correct = set(verdict.correct_keys)

        options = tuple(
            ParsedOption(
                key=slot.key or None,
                text=slot.text,
                is_correct=slot.key in correct,
                image_ref=first_image_ref(slot.images),
            )
            for slot in slots
        )
        draft = DraftQuestion(
            number=layout.block.index,
            type=verdict.type,
            title=title,
            content=content,
            options=options,
            image=image,
            pending_key_lookup=not correct,
        )
        if len(options) < 2:
            draft = draft.warn("too_few_options", f"Found {len(options)} option line(s)")
        return draft
