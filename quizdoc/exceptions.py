class QuizImportError(Exception):
    """Base error for the quiz import pipeline."""


class NormalizeError(QuizImportError):
    """The run stream is malformed and cannot be turned into lines."""


class NoQuestionsFoundError(QuizImportError):
    """The document produced zero question blocks."""


class ImportTimeoutError(QuizImportError):
    """The caller's wall-clock budget ran out between two stages."""

    def __init__(self, stage: str, budget_seconds: float):
        self.stage = stage
        self.budget_seconds = budget_seconds
        super().__init__(
            f"Import budget of {budget_seconds:.2f}s exhausted before stage '{stage}'"
        )


class DocumentReadError(QuizImportError):
    """The input could not be acquired or decoded."""
