"""
Error taxonomy for the podcast generation pipeline.

Every failure the pipeline can produce is one of the classes below. Each
class carries a fixed ``category`` tag and only the fields relevant to it,
so callers can branch on the type (or the tag) instead of parsing messages.
"""

from typing import Optional


class NewscastError(Exception):
    """Base class for all pipeline errors."""

    category = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidUrlError(NewscastError):
    """The source URL does not parse or is not http(s)."""

    category = "invalid_url"

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class RateLimitedError(NewscastError):
    category = "rate_limited"

    def __init__(self, message: str, owner_id: str):
        super().__init__(message)
        self.owner_id = owner_id


class FetchError(NewscastError):
    """Page unreachable or answered with a non-success status."""

    category = "fetch"

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class InsufficientContentError(NewscastError):
    """Page fetched but the cleaned text is too short to narrate."""

    category = "insufficient_content"

    def __init__(self, message: str, length: int = 0):
        super().__init__(message)
        self.length = length


class InvalidInputError(NewscastError):
    category = "invalid_input"


class ResponseFormatError(InvalidInputError):
    """The text-generation capability answered with an unrecognized envelope."""

    category = "response_format"


class InsufficientOutputError(NewscastError):
    category = "insufficient_output"

    def __init__(self, message: str, length: int = 0):
        super().__init__(message)
        self.length = length


class ConfigurationError(NewscastError):
    """A required credential or setting is missing."""

    category = "configuration"

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting


class EmptyInputError(NewscastError):
    category = "empty_input"


class EmptyOutputError(NewscastError):
    category = "empty_output"


class SynthesisError(NewscastError):
    """The TTS upstream answered with a non-success status."""

    category = "synthesis"

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StorageUnavailableError(NewscastError):
    """The object store is not configured or could not be reached."""

    category = "storage_unavailable"

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class PersistenceError(NewscastError):
    """A relational write failed. Logged by the pipeline, never surfaced."""

    category = "persistence"


class PipelineError(NewscastError):
    """
    A step failure annotated with the step that produced it.

    ``category`` mirrors the underlying cause so a caller gets both
    "which step" and "what kind" from a single object.
    """

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        if isinstance(cause, NewscastError):
            self.category = cause.category
            detail = cause.message
        else:
            self.category = "unexpected"
            detail = str(cause) or type(cause).__name__
        super().__init__(f"{step} failed: {detail}")
