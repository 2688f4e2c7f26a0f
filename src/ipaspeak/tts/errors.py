"""Custom TTS exceptions.

Every failure the service can report derives from TTSError. Each class
carries the machine-readable code and HTTP status the request handler
uses when converting it into an error response.
"""

from typing import Any


class TTSError(Exception):
    """Base exception for TTS-related errors."""

    code = "INTERNAL_ERROR"
    http_status = 500
    retryable = False

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def details(self) -> dict[str, Any]:
        """Return structured details for the error response body."""
        return {"code": self.code}


# === Input errors ===


class NormalizationError(TTSError):
    """Raised when raw IPA input cannot be turned into a cache key."""

    code = "INVALID_INPUT"
    http_status = 400


class EmptyInputError(NormalizationError):
    """Raised when the input is empty after trimming and delimiter removal."""

    code = "EMPTY_INPUT"

    def __init__(self, message: str = "IPA input is empty") -> None:
        super().__init__(message)


class InputTooLongError(NormalizationError):
    """Raised when normalized IPA exceeds the configured length bound."""

    code = "TOO_LONG"

    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(
            f"IPA must be at most {max_length} characters, got {length}"
        )
        self.length = length
        self.max_length = max_length

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "length": self.length, "max_length": self.max_length}


class InvalidSymbolError(NormalizationError):
    """Raised for a character outside the permitted IPA symbol set."""

    code = "INVALID_SYMBOL"

    def __init__(self, position: int, char: str) -> None:
        super().__init__(
            f"Unsupported symbol {char!r} (U+{ord(char):04X}) at position {position}"
        )
        self.position = position
        self.char = char

    def details(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "position": self.position,
            "char": self.char,
            "codepoint": f"U+{ord(self.char):04X}",
        }


class UnsupportedLanguageError(NormalizationError):
    """Raised when the requested language has no known language code."""

    code = "UNSUPPORTED_LANGUAGE"

    def __init__(self, language: str) -> None:
        super().__init__(f"Language {language} is unsupported")
        self.language = language

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "language": self.language}


# === Markup errors ===


class MarkupError(TTSError):
    """Raised when a key cannot be expressed in a provider's markup."""

    code = "MARKUP_ERROR"
    http_status = 422


class ProviderConstraintError(MarkupError):
    """Raised when the provider's length or alphabet limits are exceeded.

    The builder never truncates or silently drops symbols; it reports the
    violated constraint instead.
    """

    code = "PROVIDER_CONSTRAINT_VIOLATED"

    def __init__(self, message: str, dialect: str) -> None:
        super().__init__(message)
        self.dialect = dialect

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "dialect": self.dialect}


# === Synthesis errors ===


class SynthesisError(TTSError):
    """Base exception for failures while calling a synthesis provider."""

    code = "SYNTHESIS_FAILED"
    http_status = 502


class SynthesisTimeoutError(SynthesisError):
    """Raised when a provider attempt exceeds its time bound.

    A timeout is retry-eligible while the overall deadline allows.
    """

    code = "PROVIDER_TIMEOUT"
    http_status = 504
    retryable = True


class ProviderRejectedError(SynthesisError):
    """Exception raised when the provider refuses the content.

    This typically occurs when:
    - The markup contains a phoneme the voice cannot pronounce
    - The account quota is exhausted
    - The request is otherwise well-formed but unsynthesizable

    Retrying would reproduce the same rejection, so it never is.
    """

    code = "PROVIDER_REJECTED"
    http_status = 422

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(f"Provider rejected the request: {reason}", original_error)
        self.reason = reason
        self.status_code = status_code

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "reason": self.reason}


class TransientProviderError(SynthesisError):
    """Exception raised for provider failures that may succeed on retry.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits are exceeded (429 error)
    - Network connectivity issues
    """

    code = "PROVIDER_UNAVAILABLE"
    http_status = 503
    retryable = True

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class FatalProviderError(SynthesisError):
    """Exception raised for misconfiguration that retrying cannot fix."""

    code = "PROVIDER_MISCONFIGURED"
    http_status = 500


class TTSAuthError(FatalProviderError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing or invalid
    - API key permissions are insufficient
    """


# === Request errors ===


class RateLimitedError(TTSError):
    """Raised when a client exceeds its request quota."""

    code = "RATE_LIMITED"
    http_status = 429

    def __init__(self, limit: int, retry_after: int) -> None:
        super().__init__(f"Rate limit of {limit} requests per hour exceeded")
        self.limit = limit
        self.retry_after = retry_after

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "limit": self.limit, "retry_after": self.retry_after}
