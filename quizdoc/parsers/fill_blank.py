"""
Fill-in-Blank Parser.

The stem keeps its blank marker; consumers render it. The accepted answer
is, in order of preference:

1. Parenthesized text right after the blank: "The capital is ____ (Hanoi)."
   The parenthetical is removed from the stem.
2. An inline answer line in the block: "Answer: Hanoi".
3. The trailing answer key (resolved later; the draft stays pending).

With none of these the answer is the empty string and the Sanitizer
rejects the question.
"""

from __future__ import annotations

import re

from ..classifier import Classification
from ..markers import MarkerConfig
from ..models import ParsedOption, QuestionType
from .base import BlockParser, DraftQuestion, ParserRegistry

_PAREN_ANSWER_RE = re.compile(r"\s*\((?P<answer>[^()]*\S[^()]*)\)")


def split_inline_answer(text: str, markers: MarkerConfig) -> tuple[str, str | None]:
    """
    Pull a parenthesized answer out of `text`.

    Returns the text with the parenthetical removed and the answer, or
    the unchanged text and None.
    """
    for blank in markers.find_blanks(text):
        match = _PAREN_ANSWER_RE.match(text, blank.end())
        if match is not None:
            return text[:blank.end()] + text[match.end():], match.group("answer").strip()
    return text, None


@ParserRegistry.register(QuestionType.FILL_IN_BLANK)
class FillBlankParser(BlockParser):
    """Parser for stems with a blank marker."""

    def parse(self, verdict: Classification) -> DraftQuestion:
        layout = verdict.layout
        title, content, image = self.build_stem(layout, layout.stem_marks(len(layout.marks)))

        title, answer = split_inline_answer(title, self.markers)
        if answer is None and content:
            lines = content.split("\n")
            for i, line in enumerate(lines):
                lines[i], answer = split_inline_answer(line, self.markers)
                if answer is not None:
                    break
            content = "\n".join(lines)
        if answer is None and layout.inline_answers:
            answer = layout.inline_answers[0]

        return DraftQuestion(
            number=layout.block.index,
            type=QuestionType.FILL_IN_BLANK,
            title=title,
            content=content,
            options=(ParsedOption(text=answer or "", is_correct=True),),
            image=image,
            pending_key_lookup=answer is None,
        )
