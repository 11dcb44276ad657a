"""Exception hierarchy for the subtitle translator.

A successful translation is a plain string; every classified failure of a
translation call is one of the ``TranslationError`` subclasses below.
"""

QUOTA_COOLDOWN_SECONDS = 65.0


class SubtransError(Exception):
    """Base class for exceptions in this package."""


class ConfigurationError(SubtransError):
    """Raised for invalid settings or unsupported options."""


class SubtitleFormatError(SubtransError):
    """Raised when a subtitle document cannot be parsed or composed."""


class TranslationError(SubtransError):
    """Base class for classified failures of a translation call."""

    error_type = "translation_error"


class AuthError(TranslationError):
    """The credential is malformed or was rejected. Never retried."""

    error_type = "auth"


class QuotaError(TranslationError):
    """The remote service reported a rate limit or exhausted quota."""

    error_type = "quota"

    def __init__(self, message: str = "Quota exceeded", retry_after: float = QUOTA_COOLDOWN_SECONDS):
        super().__init__(message)
        self.retry_after = retry_after


class QuotaExhaustedError(QuotaError):
    """Quota errors persisted through every allowed attempt."""


class TruncatedError(TranslationError):
    """The response held fewer delimited segments than were sent."""

    error_type = "truncated"

    def __init__(self, expected: int, received: int, partial: str = ""):
        super().__init__(f"Expected {expected} segments, received {received}")
        self.expected = expected
        self.received = received
        self.partial = partial


class TransientError(TranslationError):
    """Network failure, malformed response or an unknown service error."""

    error_type = "transient"
