"""Parser for blocks no rule could classify."""

from __future__ import annotations

from ..classifier import Classification
from ..models import QuestionType
from .base import BlockParser, DraftQuestion, ParserRegistry


@ParserRegistry.register(QuestionType.UNKNOWN)
class UnknownParser(BlockParser):
    """Keep the stem so the dropped question can still be reviewed."""

    def parse(self, verdict: Classification) -> DraftQuestion:
        layout = verdict.layout
        title, content, image = self.build_stem(layout, layout.stem_marks(len(layout.marks)))
        draft = DraftQuestion(
            number=layout.block.index,
            type=QuestionType.UNKNOWN,
            title=title,
            content=content,
            image=image,
        )
        return draft.warn("unclassified", f"Could not classify block: {verdict.reason}")
