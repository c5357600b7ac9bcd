"""
Tests — CSV Codec
==================
Parsing, export layout, and the export → re-parse round trip for
:class:`~geo_converter.csv_codec.CsvCodec`.
"""

from __future__ import annotations

import io
from pathlib import Path

import pandas as pd
import pytest

from geo_converter.csv_codec import CsvCodec
from geo_converter.exceptions import ParseError
from geo_converter.models import RESULT_COLUMNS, Coordinate, RowOutcome

AUSTIN = Coordinate(latitude=30.2672, longitude=-97.7431, resolved_name="Austin, Texas")

UPLOAD = (
    b"city,state,neighborhood,zip,note\n"
    b"Austin,TX,Downtown,00501,\"keeps, commas\"\n"
    b"\n"
    b"Nowhereville,ZZ,,NA,\n"
)


class TestParse:
    def test_rows_in_file_order(self) -> None:
        rows = CsvCodec.parse(UPLOAD)
        assert [r["city"] for r in rows] == ["Austin", "Nowhereville"]

    def test_values_kept_verbatim(self) -> None:
        rows = CsvCodec.parse(UPLOAD)
        assert rows[0]["zip"] == "00501"
        assert rows[0]["note"] == "keeps, commas"
        assert rows[1]["zip"] == "NA"
        assert rows[1]["neighborhood"] == ""

    def test_parse_from_path(self, tmp_path: Path) -> None:
        path = tmp_path / "locations.csv"
        path.write_bytes(UPLOAD)
        assert len(CsvCodec.parse(path)) == 2

    def test_columns(self) -> None:
        assert CsvCodec.columns(UPLOAD) == ["city", "state", "neighborhood", "zip", "note"]

    def test_duplicate_headers_are_suffixed(self) -> None:
        rows = CsvCodec.parse(b"city,state,city\nAustin,TX,Round Rock\n")
        assert rows == [{"city": "Austin", "state": "TX", "city.1": "Round Rock"}]
        header = CsvCodec.serialize([RowOutcome.success(rows[0], AUSTIN)]).decode("utf-8").splitlines()[0]
        assert header.split(",")[:3] == ["city", "state", "city.1"]

    def test_empty_file_raises_parse_error(self) -> None:
        with pytest.raises(ParseError):
            CsvCodec.parse(b"")

    def test_ragged_rows_raise_parse_error(self) -> None:
        with pytest.raises(ParseError, match="Error parsing CSV"):
            CsvCodec.parse(b"city,state\nAustin,TX\nDenver,CO,extra,fields\n")

    def test_undecodable_bytes_raise_parse_error(self) -> None:
        with pytest.raises(ParseError):
            CsvCodec.parse(b"city,state\n\xff\xfe\xfa,TX\n")


class TestSerialize:
    def _outcomes(self) -> list[RowOutcome]:
        rows = CsvCodec.parse(UPLOAD)
        return [
            RowOutcome.success(rows[0], AUSTIN),
            RowOutcome.failure(rows[1], "Location not found"),
        ]

    def test_header_has_original_then_result_columns(self) -> None:
        header = CsvCodec.serialize(self._outcomes()).decode("utf-8").splitlines()[0]
        assert header.split(",") == ["city", "state", "neighborhood", "zip", "note", *RESULT_COLUMNS]

    def test_error_column_only_on_failures(self) -> None:
        frame = pd.read_csv(
            io.BytesIO(CsvCodec.serialize(self._outcomes())),
            dtype=str, keep_default_na=False,
        )
        assert frame["status"].tolist() == ["success", "error"]
        assert frame["error"].tolist() == ["", "Location not found"]
        assert frame["latitude"].tolist() == ["30.2672", ""]
        assert frame["found_location"].tolist() == ["Austin, Texas", ""]

    def test_round_trip_recovers_original_columns(self) -> None:
        original = CsvCodec.parse(UPLOAD)
        reparsed = CsvCodec.parse(CsvCodec.serialize(self._outcomes()))
        for before, after in zip(original, reparsed):
            assert {k: after[k] for k in before} == before

    def test_empty_outcomes_write_header_only(self) -> None:
        text = CsvCodec.serialize([]).decode("utf-8")
        assert text.strip() == ",".join(RESULT_COLUMNS)

    def test_write_creates_file(self, tmp_path: Path) -> None:
        out = CsvCodec.write(self._outcomes(), tmp_path / "geocoding_results.csv")
        assert out.read_bytes().startswith(b"city,state")
