"""
Question Rendering.

Two output shapes for sanitized questions:

- JSON-compatible dictionaries with camelCase keys (`isCorrect`,
  `imageUrl`), the shape stored questions come back in.
- Plain text in the importer's own conventions, so a stored quiz can be
  exported, edited by hand and imported again without drifting.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .markers import MarkerConfig
from .models import ParsedOption, ParsedQuestion, QuestionType


# =============================================================================
# Dictionaries
# =============================================================================


def option_to_dict(option: ParsedOption) -> dict[str, Any]:
    return {
        "key": option.key,
        "text": option.text,
        "isCorrect": option.is_correct,
        "imageRef": option.image_ref,
        "imageUrl": option.image_url,
    }


def question_to_dict(question: ParsedQuestion) -> dict[str, Any]:
    return {
        "id": question.id,
        "order": question.order,
        "number": question.number,
        "type": question.type.value,
        "title": question.title,
        "content": question.content,
        "imageRef": question.image_ref,
        "imageUrl": question.image_url,
        "options": [option_to_dict(option) for option in question.options],
    }


def option_from_dict(data: dict[str, Any]) -> ParsedOption:
    return ParsedOption(
        key=data.get("key"),
        text=data.get("text") or "",
        is_correct=bool(data.get("isCorrect", data.get("is_correct", False))),
        image_ref=data.get("imageRef", data.get("image_ref")),
        image_url=data.get("imageUrl", data.get("image_url")),
    )


def question_from_dict(data: dict[str, Any]) -> ParsedQuestion:
    """
    Build a ParsedQuestion from a stored dictionary.

    Accepts camelCase or snake_case keys. Raises ValueError for an unknown
    question type.
    """
    return ParsedQuestion(
        id=str(data.get("id") or ""),
        title=data.get("title") or "",
        content=data.get("content") or "",
        type=QuestionType(data.get("type", QuestionType.UNKNOWN.value)),
        options=tuple(option_from_dict(option) for option in data.get("options") or ()),
        order=int(data.get("order") or 0),
        number=data.get("number"),
        image_ref=data.get("imageRef", data.get("image_ref")),
        image_url=data.get("imageUrl", data.get("image_url")),
    )


def questions_to_dicts(questions: Iterable[ParsedQuestion]) -> list[dict[str, Any]]:
    return [question_to_dict(question) for question in questions]


def questions_from_dicts(items: Iterable[dict[str, Any]]) -> list[ParsedQuestion]:
    return [question_from_dict(item) for item in items]


# =============================================================================
# Plain Text
# =============================================================================


def render_plain_text(
    questions: Iterable[ParsedQuestion],
    markers: MarkerConfig | None = None,
) -> str:
    """
    Render questions as importable plain text.

    Choice options are lettered with `*` on the correct ones, matching
    pairs become `left -> right` lines, and fill-in-blank answers go in
    parentheses after the blank (or on an answer line).
    """
    markers = markers or MarkerConfig.english()
    word = markers.question_words[0]
    blocks = []
    for number, question in enumerate(questions, start=1):
        lines = [f"{word} {number}: {_render_title(question, markers)}"]
        content = _render_content(question, markers)
        if content:
            lines.extend(content.split("\n"))

        if question.type.is_choice:
            if question.type is QuestionType.MULTIPLE_CHOICE:
                lines.append(markers.multi_select_label)
            for index, option in enumerate(question.options):
                key = option.key or markers.option_letters[index % len(markers.option_letters)]
                star = "*" if option.is_correct else ""
                lines.append(f"{key}. {star}{option.text}")
        elif question.type is QuestionType.MATCHING:
            for left, right in question.pairs:
                lines.append(f"{left.text} -> {right.text}")
        elif question.type is QuestionType.FILL_IN_BLANK:
            answer = _fill_answer(question)
            if answer and not _answer_inlined(question, markers):
                lines.append(f"{markers.answer_labels[0]}: {answer}")

        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def _fill_answer(question: ParsedQuestion) -> str:
    return question.options[0].text if question.options else ""


def _answer_inlined(question: ParsedQuestion, markers: MarkerConfig) -> bool:
    """Whether the answer fits in parentheses after the blank in the title or content."""
    answer = _fill_answer(question)
    if not answer or "(" in answer or ")" in answer:
        return False
    return markers.has_blank(question.title) or markers.has_blank(question.content)


def _insert_after_blank(text: str, answer: str, markers: MarkerConfig) -> str:
    blanks = markers.find_blanks(text)
    if not blanks:
        return text
    end = blanks[0].end()
    return f"{text[:end]} ({answer}){text[end:]}"


def _render_title(question: ParsedQuestion, markers: MarkerConfig) -> str:
    if question.type is QuestionType.FILL_IN_BLANK and _answer_inlined(question, markers):
        if markers.has_blank(question.title):
            return _insert_after_blank(question.title, _fill_answer(question), markers)
    return question.title


def _render_content(question: ParsedQuestion, markers: MarkerConfig) -> str:
    content = question.content
    if (
        question.type is QuestionType.FILL_IN_BLANK
        and _answer_inlined(question, markers)
        and not markers.has_blank(question.title)
    ):
        lines = content.split("\n")
        for index, line in enumerate(lines):
            if markers.has_blank(line):
                lines[index] = _insert_after_blank(line, _fill_answer(question), markers)
                break
        content = "\n".join(lines)
    return content
