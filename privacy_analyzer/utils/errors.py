"""
Error taxonomy for the analyzer and helpers for consistent
error message extraction.

Three families are distinguished:

* ``InputError``: bad caller input (URL, filter token, message).
  Reported straight back to the caller and never retried.
* ``ResourceError``: the page could not be obtained.  Surfaced as a
  single message, no automatic retry.
* ``IntrospectionError``: a live canvas/DOM object could not be
  inspected during interception.  Always swallowed by the wrapper.
"""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base class for all errors raised by the analyzer."""


class InputError(AnalyzerError):
    """Malformed caller input."""


class InvalidUrlError(InputError):
    """The page URL is not an absolute http(s) URL with a host."""

    def __init__(self, url: str, reason: str = "not an absolute http(s) URL") -> None:
        self.url = url
        super().__init__(f"Invalid URL {url!r}: {reason}")


class InvalidFilterError(InputError):
    """A ``--filter`` token is not one of the known categories."""

    def __init__(self, token: str, valid: list[str]) -> None:
        self.token = token
        self.valid = valid
        super().__init__(f"Invalid filter type: {token}. Valid types: {', '.join(valid)}")


class InvalidMessageError(InputError):
    """An extension message could not be validated."""


class ResourceError(AnalyzerError):
    """An external resource could not be obtained."""


class PageFetchError(ResourceError):
    """Fetching the page failed (non-2xx status or network error)."""

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(message)


class IntrospectionError(AnalyzerError):
    """A live object could not be inspected while intercepting a call."""


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.

    Falls back to the exception class name when the exception
    carries no message.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"
