"""
Geo Converter — CSV Codec
==========================
Reads an uploaded delimited file into ordered row records and writes
row outcomes back out as CSV, using :mod:`pandas` for the lexical work.

All cells are read as text and kept verbatim: no numeric coercion, no
``NaN`` substitution, so pass-through columns export exactly as they
were uploaded.  Blank lines are skipped.

Rows are plain dicts, so header names must be unique.  pandas renames a
repeated header to ``name.1``, ``name.2`` and so on; an upload with
``city,state,city`` therefore exports ``city,state,city.1``.

Usage::

    from geo_converter.csv_codec import CsvCodec

    rows = CsvCodec.parse(Path("locations.csv"))
    ...
    CsvCodec.write(outcomes, Path("geocoding_results.csv"))
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Sequence, Union

import pandas as pd

from geo_converter.exceptions import OutputWriteError, ParseError
from geo_converter.models import RESULT_COLUMNS, RowOutcome

logger = logging.getLogger("geo_converter.csv_codec")

DEFAULT_FILENAME = "geocoding_results.csv"

Source = Union[str, Path, bytes, io.IOBase]


class CsvCodec:
    """Namespace of static CSV read/write helpers.

    Never instantiated, like :class:`~geo_converter.validators.Validators`.
    """

    @staticmethod
    def read_frame(source: Source, nrows: int | None = None) -> pd.DataFrame:
        """Read *source* into a string-typed DataFrame.

        Args:
            source: A path, raw bytes, or an open binary/text stream.
            nrows: Read only this many data rows (``0`` for header only).

        Raises:
            ParseError: If the content cannot be decoded as delimited text.
        """
        handle: Any = io.BytesIO(source) if isinstance(source, bytes) else source
        try:
            return pd.read_csv(
                handle,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                nrows=nrows,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
            raise ParseError(f"Error parsing CSV: {exc}") from exc

    @staticmethod
    def parse(source: Source) -> list[dict[str, str]]:
        """Decode *source* into row records in file order.

        Returns:
            One ``{column: text}`` dict per data row.

        Raises:
            ParseError: If the content cannot be decoded.
        """
        df = CsvCodec.read_frame(source)
        rows = df.to_dict(orient="records")
        logger.debug("Parsed %d rows with columns %s", len(rows), list(df.columns))
        return rows

    @staticmethod
    def columns(source: Source) -> list[str]:
        """Return the header row of *source*."""
        return list(CsvCodec.read_frame(source, nrows=0).columns)

    @staticmethod
    def to_frame(outcomes: Sequence[RowOutcome]) -> pd.DataFrame:
        """Flatten outcomes into a DataFrame.

        Original columns keep their first-seen order; the result columns
        always come last.
        """
        records = [o.to_record() for o in outcomes]
        ordered: list[str] = []
        for outcome in outcomes:
            for col in outcome.row:
                if col not in ordered and col not in RESULT_COLUMNS:
                    ordered.append(col)
        return pd.DataFrame.from_records(records, columns=ordered + list(RESULT_COLUMNS))

    @staticmethod
    def serialize(outcomes: Sequence[RowOutcome]) -> bytes:
        """Encode outcomes as UTF-8 CSV bytes, header included."""
        frame = CsvCodec.to_frame(outcomes)
        return frame.to_csv(index=False).encode("utf-8")

    @staticmethod
    def write(outcomes: Sequence[RowOutcome], output_path: Path) -> Path:
        """Write outcomes to *output_path*.

        Raises:
            OutputWriteError: If the file cannot be written.
        """
        output_path = Path(output_path)
        try:
            output_path.write_bytes(CsvCodec.serialize(outcomes))
        except OSError as exc:
            raise OutputWriteError(str(output_path), str(exc)) from exc
        logger.debug("Wrote %d rows → %s", len(outcomes), output_path)
        return output_path
