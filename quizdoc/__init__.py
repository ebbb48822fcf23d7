"""
quizdoc - structured quiz extraction from human-authored documents.

Turns a word-processor run stream or plain text into storage-ready
quiz questions:

    from quizdoc import QuizImportPipeline

    result = QuizImportPipeline().run(text)
    result.questions, result.dropped, result.warnings
"""

from .answer_key import AnswerKey, AnswerKeyResolver, locate_answer_key
from .classifier import Classification, QuestionClassifier
from .exceptions import (
    DocumentReadError,
    ImportTimeoutError,
    NoQuestionsFoundError,
    NormalizeError,
    QuizImportError,
)
from .images import ImageUploader, attach_image_urls, upload_images
from .markers import MarkerConfig
from .models import (
    PARAGRAPH_BREAK,
    ClassificationWarning,
    DroppedQuestion,
    ExtractedImage,
    ImageHandle,
    ImportResult,
    LogicalLine,
    ParagraphBreak,
    ParsedOption,
    ParsedQuestion,
    QuestionBlock,
    QuestionType,
    TextRun,
)
from .normalizer import normalize_runs, normalize_text, runs_from_plain_text
from .pipeline import QuizImportPipeline
from .render import questions_from_dicts, questions_to_dicts, render_plain_text
from .sanitizer import SanitizeResult, Sanitizer
from .segmenter import QuestionSegmenter
from .sources import BytesSource, FileSource, ImportInput, RemoteSource, TextSource

__version__ = "1.0.0"

__all__ = [
    "AnswerKey",
    "AnswerKeyResolver",
    "BytesSource",
    "Classification",
    "ClassificationWarning",
    "DocumentReadError",
    "DroppedQuestion",
    "ExtractedImage",
    "FileSource",
    "ImageHandle",
    "ImageUploader",
    "ImportInput",
    "ImportResult",
    "ImportTimeoutError",
    "LogicalLine",
    "MarkerConfig",
    "NoQuestionsFoundError",
    "NormalizeError",
    "PARAGRAPH_BREAK",
    "ParagraphBreak",
    "ParsedOption",
    "ParsedQuestion",
    "QuestionBlock",
    "QuestionClassifier",
    "QuestionSegmenter",
    "QuestionType",
    "QuizImportError",
    "QuizImportPipeline",
    "RemoteSource",
    "SanitizeResult",
    "Sanitizer",
    "TextRun",
    "TextSource",
    "attach_image_urls",
    "locate_answer_key",
    "normalize_runs",
    "normalize_text",
    "questions_from_dicts",
    "questions_to_dicts",
    "render_plain_text",
    "runs_from_plain_text",
    "upload_images",
]
