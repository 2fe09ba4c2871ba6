"""Project-level exception hierarchy."""


class RelayError(Exception):
    """Base for all line-relay exceptions."""


class GenerationError(RelayError):
    """Generation API call failed."""


class GenerationTimeoutError(GenerationError):
    """Generation API did not answer within its time budget."""


class GenerationUnavailableError(GenerationError):
    """Generation API is not configured (no API key)."""


class GenerationResponseError(GenerationError):
    """Generation API answered with an error or an unusable payload."""


class AssetError(RelayError):
    """Generated asset could not be stored."""


class ReplyError(RelayError):
    """LINE reply API call failed."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
