"""
Tests — Data Model
===================
Unit tests for :class:`~geo_converter.models.LocationQuery`,
:class:`~geo_converter.models.RowOutcome` and
:class:`~geo_converter.models.BatchRun`.
"""

from __future__ import annotations

import pytest

from geo_converter.exceptions import InputValidationError
from geo_converter.models import (
    RESULT_COLUMNS,
    BatchRun,
    Coordinate,
    LocationQuery,
    RowOutcome,
    RowStatus,
)


AUSTIN = Coordinate(latitude=30.2672, longitude=-97.7431, resolved_name="Austin, Texas")


# ---------------------------------------------------------------------------
# LocationQuery
# ---------------------------------------------------------------------------


class TestLocationQuery:
    def test_search_string_without_neighborhood(self) -> None:
        assert LocationQuery("Austin", "TX", "").search_string() == "Austin, TX"

    def test_search_string_with_neighborhood(self) -> None:
        query = LocationQuery(city="Austin", state="TX", neighborhood="Downtown")
        assert query.search_string() == "Downtown, Austin, TX"

    def test_neighborhood_defaults_to_empty(self) -> None:
        assert LocationQuery("Portland", "OR").search_string() == "Portland, OR"

    def test_from_row_ignores_extra_columns(self) -> None:
        row = {"city": "Austin", "state": "TX", "neighborhood": "Zilker", "id": "7"}
        assert LocationQuery.from_row(row) == LocationQuery("Austin", "TX", "Zilker")

    def test_from_row_missing_neighborhood_key(self) -> None:
        query = LocationQuery.from_row({"city": "Austin", "state": "TX"})
        assert query.neighborhood == ""
        assert query.search_string() == "Austin, TX"

    def test_from_row_treats_none_as_empty(self) -> None:
        query = LocationQuery.from_row({"city": "Austin", "state": "TX", "neighborhood": None})
        assert query.search_string() == "Austin, TX"

    def test_whitespace_neighborhood_is_omitted(self) -> None:
        query = LocationQuery.from_row({"city": "Austin", "state": "TX", "neighborhood": "   "})
        assert query.search_string() == "Austin, TX"

    @pytest.mark.parametrize("city,state", [("", "TX"), ("Austin", ""), ("  ", "TX")])
    def test_validate_rejects_blank_required_fields(self, city: str, state: str) -> None:
        with pytest.raises(InputValidationError, match="Missing required field"):
            LocationQuery(city, state).validate()

    def test_label_puts_neighborhood_last(self) -> None:
        assert LocationQuery("Austin", "TX", "Downtown").label() == "Austin, TX, Downtown"


# ---------------------------------------------------------------------------
# RowOutcome
# ---------------------------------------------------------------------------


class TestRowOutcome:
    def test_success_shape(self) -> None:
        outcome = RowOutcome.success({"city": "Austin", "state": "TX"}, AUSTIN)
        assert outcome.status is RowStatus.SUCCESS
        assert outcome.ok
        assert outcome.error_message is None

    def test_failure_shape(self) -> None:
        outcome = RowOutcome.failure({"city": "Nowhereville", "state": "ZZ"}, "Location not found")
        assert outcome.status is RowStatus.FAILURE
        assert not outcome.ok
        assert outcome.coordinate is None

    def test_both_shapes_rejected(self) -> None:
        with pytest.raises(ValueError):
            RowOutcome(row={}, coordinate=AUSTIN, error_message="boom")

    def test_neither_shape_rejected(self) -> None:
        with pytest.raises(ValueError):
            RowOutcome(row={})

    def test_row_is_copied(self) -> None:
        row = {"city": "Austin", "state": "TX"}
        outcome = RowOutcome.success(row, AUSTIN)
        row["city"] = "Dallas"
        assert outcome.row["city"] == "Austin"

    def test_equal_by_value_but_unhashable(self) -> None:
        row = {"city": "Austin", "state": "TX"}
        assert RowOutcome.success(row, AUSTIN) == RowOutcome.success(row, AUSTIN)
        with pytest.raises(TypeError):
            hash(RowOutcome.failure(row, "Location not found"))

    def test_success_record(self) -> None:
        record = RowOutcome.success({"city": "Austin", "state": "TX", "id": "1"}, AUSTIN).to_record()
        assert list(record)[:3] == ["city", "state", "id"]
        assert record["latitude"] == 30.2672
        assert record["longitude"] == -97.7431
        assert record["found_location"] == "Austin, Texas"
        assert record["status"] == "success"
        assert record["error"] == ""

    def test_failure_record(self) -> None:
        record = RowOutcome.failure({"city": "Nowhereville", "state": "ZZ"}, "Location not found").to_record()
        assert record["status"] == "error"
        assert record["error"] == "Location not found"
        assert record["latitude"] == ""
        assert set(RESULT_COLUMNS) <= set(record)

    def test_display_labels(self) -> None:
        assert RowStatus.SUCCESS.display == "Success"
        assert RowStatus.FAILURE.display == "Error"


# ---------------------------------------------------------------------------
# BatchRun
# ---------------------------------------------------------------------------


class TestBatchRun:
    def test_counts_and_summary(self) -> None:
        run = BatchRun()
        run.record(RowOutcome.success({"city": "Austin", "state": "TX"}, AUSTIN))
        run.record(RowOutcome.failure({"city": "X", "state": "ZZ"}, "Location not found"))
        run.update_progress(1.0)
        assert run.succeeded == 1
        assert run.failed == 1
        assert run.progress == 1.0
        assert run.summary() == "Geocoded 1/2 locations (1 failed)"

    def test_cancelled_summary(self) -> None:
        run = BatchRun(cancelled=True)
        assert run.summary().endswith("[cancelled]")

    def test_progress_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            BatchRun().update_progress(1.5)
