"""
Matching Parser.

Builds the left and right columns independently, then zips them by
position into consecutive (left, right) options. Uneven columns are
truncated to the shorter one and reported as a warning.
"""

from __future__ import annotations

from ..classifier import Classification, ListRun
from ..models import ParsedOption, QuestionType
from .base import BlockParser, DraftQuestion, ParserRegistry, first_image_ref


@ParserRegistry.register(QuestionType.MATCHING)
class MatchingParser(BlockParser):
    """Parser for two-column lists and `left -> right` pair lines."""

    def parse(self, verdict: Classification) -> DraftQuestion:
        shape = verdict.matching
        if shape is not None and shape.columns is not None:
            return self._parse_columns(verdict, *shape.columns)
        return self._parse_pair_lines(verdict)

    def _parse_columns(self, verdict: Classification, left: ListRun, right: ListRun) -> DraftQuestion:
        layout = verdict.layout
        title, content, image = self.build_stem(layout, layout.stem_marks(left.first))

        left_slots = layout.slots(left.indices, stop=right.first)
        right_slots = layout.slots(right.indices)
        options: list[ParsedOption] = []
        for left_slot, right_slot in zip(left_slots, right_slots):
            for slot in (left_slot, right_slot):
                options.append(
                    ParsedOption(
                        key=slot.key,
                        text=slot.text,
                        image_ref=first_image_ref(slot.images),
                    )
                )

        draft = DraftQuestion(
            number=layout.block.index,
            type=QuestionType.MATCHING,
            title=title,
            content=content,
            options=tuple(options),
            image=image,
        )
        if len(left_slots) != len(right_slots):
            draft = draft.warn(
                "matching_truncated",
                f"Left column has {len(left_slots)} entries, right column has "
                f"{len(right_slots)}; kept {min(len(left_slots), len(right_slots))} pairs",
            )
        return draft

    def _parse_pair_lines(self, verdict: Classification) -> DraftQuestion:
        layout = verdict.layout
        indices = layout.pair_indices
        title, content, image = self.build_stem(layout, layout.stem_marks(indices[0]))

        options: list[ParsedOption] = []
        for index in indices:
            left, right = layout.marks[index].pair
            options.append(ParsedOption(text=left))
            options.append(ParsedOption(text=right))

        return DraftQuestion(
            number=layout.block.index,
            type=QuestionType.MATCHING,
            title=title,
            content=content,
            options=tuple(options),
            image=image,
        )
