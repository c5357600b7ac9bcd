"""
Geo Converter — Data Model
===========================
Value types shared by the geocoding client, the batch processor and the
command-line shell.

Classes:
    LocationQuery   City / state / optional neighborhood to be geocoded.
    Coordinate      Immutable latitude / longitude / resolved name.
    RowStatus       Success or failure tag for one batch row.
    RowOutcome      Original row fields plus either a coordinate or an error.
    BatchRun        Ordered outcomes and progress of one in-flight batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from geo_converter.exceptions import InputValidationError

#: Columns appended to every exported row, in output order.
RESULT_COLUMNS: tuple[str, ...] = (
    "latitude",
    "longitude",
    "found_location",
    "status",
    "error",
)


# ---------------------------------------------------------------------------
# Queries & coordinates
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    """Coerce a cell value to a stripped string; ``None`` reads as empty."""
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class LocationQuery:
    """A human-readable place description.

    Attributes:
        city: City name (required).
        state: State or region (required).
        neighborhood: Optional neighborhood; an empty string means absent.

    Example::

        >>> LocationQuery("Austin", "TX", "Downtown").search_string()
        'Downtown, Austin, TX'
    """

    city: str
    state: str
    neighborhood: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LocationQuery":
        """Build a query from a CSV row mapping.

        Missing ``city`` / ``state`` / ``neighborhood`` keys read as empty
        strings; all other keys are ignored.
        """
        return cls(
            city=_text(row.get("city")),
            state=_text(row.get("state")),
            neighborhood=_text(row.get("neighborhood")),
        )

    def validate(self) -> None:
        """Ensure both required fields are present.

        Raises:
            InputValidationError: If ``city`` or ``state`` is blank.
        """
        for name in ("city", "state"):
            if not getattr(self, name).strip():
                raise InputValidationError(f"Missing required field: {name}")

    def search_string(self) -> str:
        """Compose the free-text query sent to the provider.

        The neighborhood segment, including its trailing ``", "``, is
        omitted entirely when the neighborhood is empty.
        """
        prefix = f"{self.neighborhood}, " if self.neighborhood else ""
        return f"{prefix}{self.city}, {self.state}"

    def label(self) -> str:
        """Display label used in result tables (``city, state[, neighborhood]``)."""
        suffix = f", {self.neighborhood}" if self.neighborhood else ""
        return f"{self.city}, {self.state}{suffix}"


@dataclass(frozen=True)
class Coordinate:
    """Immutable result of a successful lookup.

    Attributes:
        latitude: Latitude in decimal degrees (WGS84).
        longitude: Longitude in decimal degrees (WGS84).
        resolved_name: The provider's display name for the match.
    """

    latitude: float
    longitude: float
    resolved_name: str


# ---------------------------------------------------------------------------
# Row outcomes
# ---------------------------------------------------------------------------


class RowStatus(Enum):
    """Outcome tag for one batch row; the value is the exported label."""

    SUCCESS = "success"
    FAILURE = "error"

    @property
    def display(self) -> str:
        """Label shown in the results table."""
        return "Success" if self is RowStatus.SUCCESS else "Error"


@dataclass(frozen=True)
class RowOutcome:
    """Per-row batch result.

    Exactly one of ``coordinate`` / ``error_message`` is populated.  The
    original row is copied verbatim so it can be exported unchanged.
    Use :meth:`success` and :meth:`failure` rather than the constructor.
    Outcomes compare by value but are unhashable, since ``row`` is a
    plain ``dict``.

    Attributes:
        row: The original input fields, in input column order.
        coordinate: The geocoded point on success, else ``None``.
        error_message: Why the lookup failed, else ``None``.
    """

    row: dict[str, Any]
    coordinate: Coordinate | None = None
    error_message: str | None = None

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if (self.coordinate is None) == (self.error_message is None):
            raise ValueError(
                "RowOutcome needs exactly one of coordinate or error_message"
            )

    @classmethod
    def success(cls, row: Mapping[str, Any], coordinate: Coordinate) -> "RowOutcome":
        return cls(row=dict(row), coordinate=coordinate)

    @classmethod
    def failure(cls, row: Mapping[str, Any], message: str) -> "RowOutcome":
        return cls(row=dict(row), error_message=message)

    @property
    def status(self) -> RowStatus:
        return RowStatus.SUCCESS if self.coordinate is not None else RowStatus.FAILURE

    @property
    def ok(self) -> bool:
        """``True`` if the row was geocoded."""
        return self.status is RowStatus.SUCCESS

    @property
    def query(self) -> LocationQuery:
        return LocationQuery.from_row(self.row)

    def to_record(self) -> dict[str, Any]:
        """Flatten to the export mapping.

        Returns:
            Original fields followed by :data:`RESULT_COLUMNS`.  Fields of
            the unpopulated shape are empty strings.  Result columns
            overwrite input columns of the same name.
        """
        record = dict(self.row)
        if self.coordinate is not None:
            record.update(
                latitude=self.coordinate.latitude,
                longitude=self.coordinate.longitude,
                found_location=self.coordinate.resolved_name,
                status=self.status.value,
                error="",
            )
        else:
            record.update(
                latitude="",
                longitude="",
                found_location="",
                status=self.status.value,
                error=self.error_message,
            )
        return record


# ---------------------------------------------------------------------------
# Batch run state
# ---------------------------------------------------------------------------


@dataclass
class BatchRun:
    """Ephemeral state of one batch: ordered outcomes plus progress.

    Owned by the presentation layer and fed from the processor's
    progress callback.  Never persisted; a new upload replaces it.

    Attributes:
        outcomes: Outcomes in input order.
        progress: Fraction of rows processed, in ``[0, 1]``.
        cancelled: Set when the run stopped early on request.
    """

    outcomes: list[RowOutcome] = field(default_factory=list)
    progress: float = 0.0
    cancelled: bool = False

    def record(self, outcome: RowOutcome) -> None:
        """Append one completed row outcome."""
        self.outcomes.append(outcome)

    def update_progress(self, ratio: float) -> None:
        """Move progress to *ratio*; usable directly as a progress callback."""
        if not 0.0 <= ratio <= 1.0:
            raise ValueError(f"progress ratio out of range: {ratio}")
        self.progress = ratio

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def summary(self) -> str:
        """Human-readable one-line description of the run."""
        total = len(self.outcomes)
        text = f"Geocoded {self.succeeded}/{total} locations ({self.failed} failed)"
        if self.cancelled:
            text += " [cancelled]"
        return text
