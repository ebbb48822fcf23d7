"""
Block Parsers.

One parser per question type, registered in ParserRegistry:
- ChoiceParser: SINGLE_CHOICE and MULTIPLE_CHOICE
- MatchingParser: MATCHING
- FillBlankParser: FILL_IN_BLANK
- UnknownParser: UNKNOWN (keeps the stem for the dropped list)
"""

from .base import BlockParser, DraftQuestion, ParserRegistry
from .choice import ChoiceParser
from .fill_blank import FillBlankParser, split_inline_answer
from .matching import MatchingParser
from .unknown import UnknownParser

__all__ = [
    "BlockParser",
    "DraftQuestion",
    "ParserRegistry",
    "ChoiceParser",
    "FillBlankParser",
    "MatchingParser",
    "UnknownParser",
    "split_inline_answer",
]
