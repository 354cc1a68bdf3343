class CardsmithError(Exception):
    """Base class for every error raised by cardsmith."""


class NotFoundError(CardsmithError):
    """Raised when an input path does not exist."""


class ReadError(CardsmithError):
    """Raised when a source document cannot be read."""


class ServiceError(CardsmithError):
    """Raised when the generation service answers with a non-success status
    or cannot be reached (status_code is None in that case)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationTimeout(CardsmithError):
    """Raised when a generation call exceeds its deadline."""


class StoreError(CardsmithError):
    """Raised when the flashcard store cannot complete an operation."""


class SessionStateError(CardsmithError):
    """Raised on an action the review session cannot take in its current state."""


class NothingDueError(CardsmithError):
    """Raised when a review session is started with an empty snapshot."""
