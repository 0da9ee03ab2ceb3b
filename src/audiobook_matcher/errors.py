"""Exception hierarchy and error categorization for the audiobook matcher."""

from .models import ErrorCategory


class MatcherError(Exception):
    """Base exception for all matcher errors."""


class ConfigError(MatcherError):
    """Invalid or missing configuration."""


class InvalidInputError(MatcherError):
    """Caller supplied input that no strategy can work with."""


class SearchCancelled(MatcherError):
    """An external cancellation signal fired during an outbound call."""


class UpstreamError(MatcherError):
    """A third-party catalog call failed."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code
        self.category = (
            categorize_status(status_code)
            if status_code is not None
            else ErrorCategory.TRANSIENT
        )


class TransientUpstreamError(UpstreamError):
    """Network error, timeout, 5xx or malformed body. Safe to retry later."""


def categorize_status(code: int) -> ErrorCategory:
    """Map an HTTP status code to an error category.

    404 means the catalog does not know the identifier (normal data absence).
    Other 4xx codes are permanent; everything else is treated as transient.
    """
    if code == 404:
        return ErrorCategory.NOT_FOUND
    if 400 <= code < 500 and code != 429:
        return ErrorCategory.PERMANENT
    return ErrorCategory.TRANSIENT
