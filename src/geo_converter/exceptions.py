"""
Geo Converter — Custom Exception Hierarchy
===========================================
All Geo Converter modules raise exceptions from this module so callers
can catch them at the right level of granularity.

Hierarchy::

    GeoConverterError                    ← catch-all base
    ├── InputValidationError             ← bad files, blank city/state, etc.
    │   └── ColumnNotFoundError          ← CSV column missing
    ├── GeocodingError                   ← one lookup failed (row-level)
    │   ├── NotFoundError                ← provider returned zero matches
    │   └── TransportError               ← request did not complete
    │       └── GeocodingRateLimitError  ← provider answered HTTP 429
    ├── ParseError                       ← upload cannot be decoded into rows
    ├── BatchAbortedError                ← row sequence could not be acquired
    └── OutputWriteError                 ← cannot write to output path

Row-level errors (:class:`GeocodingError` and its subclasses) are caught
by the batch loop and turned into failure outcomes.  Everything else
terminates the run.

Usage::

    from geo_converter.exceptions import NotFoundError

    raise NotFoundError("Location not found")
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class GeoConverterError(Exception):
    """Base exception for all Geo Converter errors.

    Catch this to handle any tool-specific error without caring about
    the exact subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(GeoConverterError):
    """Raised when inputs fail pre-processing validation.

    This is the parent class for more specific input problems.
    """


class ColumnNotFoundError(InputValidationError):
    """Raised when an expected column is absent from the uploaded file.

    Args:
        column: The name of the missing column.
        available: List of column names that ARE present, used to
                   generate a helpful error message.

    Example::

        raise ColumnNotFoundError("city", df.columns.tolist())
    """

    def __init__(self, column: str, available: list[str]) -> None:
        available_str = ", ".join(f"'{c}'" for c in available)
        super().__init__(
            f"Column '{column}' not found. Available columns: {available_str}"
        )
        self.column: str = column
        self.available: list[str] = available


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------


class GeocodingError(GeoConverterError):
    """Raised when a single geocoding lookup fails for any reason."""


class NotFoundError(GeocodingError):
    """Raised when the provider returns zero matches for a query.

    Args:
        message: Defaults to the text shown to users for an unknown place.
    """

    def __init__(self, message: str = "Location not found") -> None:
        super().__init__(message)


class TransportError(GeocodingError):
    """Raised when the lookup request does not complete successfully.

    Covers network failures, timeouts, non-success HTTP statuses and
    response bodies that cannot be interpreted.
    """


class GeocodingRateLimitError(TransportError):
    """Raised when the geocoding provider returns a rate-limit response.

    Args:
        provider: Name of the geocoding service (e.g. ``"Nominatim"``).
        retry_after: Suggested seconds to wait before retrying, if
                     provided by the API.  ``None`` if unknown.

    Example::

        raise GeocodingRateLimitError("Nominatim", retry_after=60)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        hint = f" Retry after {retry_after}s." if retry_after else ""
        super().__init__(f"Rate limit exceeded for provider '{provider}'.{hint}")
        self.provider: str = provider
        self.retry_after: int | None = retry_after


# ---------------------------------------------------------------------------
# File / batch level
# ---------------------------------------------------------------------------


class ParseError(GeoConverterError):
    """Raised when an uploaded file cannot be decoded into row records.

    Fatal to the whole batch: no rows are processed.
    """


class BatchAbortedError(GeoConverterError):
    """Raised when the row sequence itself cannot be acquired.

    Args:
        message: Description of the underlying failure.
        partial_outcomes: Outcomes completed before the failure, in input
                          order.  Empty when nothing was processed.
    """

    def __init__(self, message: str, partial_outcomes: list[Any] | None = None) -> None:
        super().__init__(message)
        self.partial_outcomes: list[Any] = list(partial_outcomes or [])


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(GeoConverterError):
    """Raised when the results file cannot be written.

    Args:
        output_path: String representation of the path that failed.
        reason: Underlying OS or library error message.

    Example::

        raise OutputWriteError("/read-only/dir/geocoding_results.csv", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write output to '{output_path}': {reason}"
        )
        self.output_path: str = output_path
        self.reason: str = reason
