"""
Geo Converter — Batch Converter Tool
=====================================
Geocodes every row of an uploaded CSV of ``city`` / ``state`` /
``neighborhood`` locations and writes the enriched rows to
``geocoding_results.csv`` (or any other path).

Failed rows are kept in the output with ``status=error`` and the error
message in the ``error`` column, so no data is silently lost.

Usage::

    from pathlib import Path
    from geo_converter.converter import BatchConverter
    from geo_converter.client import NominatimClient

    tool = BatchConverter(
        input_path=Path("data/locations.csv"),
        output_path=Path("output/geocoding_results.csv"),
        client=NominatimClient(user_agent="my-project/1.0"),
    )
    tool.run()
    print(tool.batch_run.summary())
"""

from __future__ import annotations

import logging
from pathlib import Path

from geo_converter.base_tool import GeoTool
from geo_converter.batch import BatchProcessor, CancellationToken, ProgressCallback
from geo_converter.client import GeocodeClient, NominatimClient
from geo_converter.csv_codec import CsvCodec
from geo_converter.exceptions import BatchAbortedError
from geo_converter.models import BatchRun
from geo_converter.pacing import RateLimiter, RetryPolicy, Sleep
from geo_converter.validators import Validators

logger = logging.getLogger("geo_converter.converter")

REQUIRED_COLUMNS: tuple[str, ...] = ("city", "state")


class BatchConverter(GeoTool):
    """Geocode every row in a CSV file and write a results CSV.

    Args:
        input_path: Path to the uploaded CSV file.
        output_path: Path for the results CSV.
        client: A :class:`GeocodeClient`.  Defaults to
                :class:`NominatimClient`.
        rate_limiter: Pause policy after each row (default 1 s fixed).
        retry_policy: Retry schedule for transport failures (default none).
        on_progress: Called with the processed ratio after each row.
        cancel_token: Stops the batch early when cancelled; completed
                      rows are still written.
        sleep: Blocking sleep function, injectable for tests.
        verbose: Enable DEBUG-level logging.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        client: GeocodeClient | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        sleep: Sleep | None = None,
        *,
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self.client: GeocodeClient = client or NominatimClient()
        processor_kwargs = {"sleep": sleep} if sleep is not None else {}
        self.processor = BatchProcessor(
            self.client,
            rate_limiter=rate_limiter,
            retry_policy=retry_policy,
            **processor_kwargs,
        )
        self.on_progress = on_progress
        self.cancel_token = cancel_token

        self._batch_run: BatchRun | None = None

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Validate the upload and output location before geocoding.

        Raises:
            InputValidationError: If the file is missing or not a CSV.
            ColumnNotFoundError: If ``city`` or ``state`` is absent.
            ParseError: If the header cannot be decoded.
            OutputWriteError: If the output directory cannot be created.
        """
        Validators.assert_file_exists(self.input_path)
        Validators.assert_supported_extension(self.input_path, [".csv"])
        Validators.assert_output_dir_writable(self.output_path)
        Validators.assert_columns_exist(CsvCodec.columns(self.input_path), REQUIRED_COLUMNS)
        logger.debug("Inputs validated successfully.")

    def process(self) -> None:
        """Parse, geocode every row, and write the results file.

        A fresh :class:`BatchRun` replaces any previous one.  If the batch
        aborts, the rows completed so far are written before the
        :class:`BatchAbortedError` propagates.

        Raises:
            ParseError: If the file cannot be decoded into rows.
            BatchAbortedError: On a fatal error during the batch.
            OutputWriteError: If writing the output file fails.
        """
        rows = CsvCodec.parse(self.input_path)
        batch_run = BatchRun()
        self._batch_run = batch_run

        def _progress(ratio: float) -> None:
            batch_run.update_progress(ratio)
            if self.on_progress is not None:
                self.on_progress(ratio)

        try:
            self.processor.run(
                rows,
                on_progress=_progress,
                cancel_token=self.cancel_token,
                on_outcome=batch_run.record,
            )
        except BatchAbortedError:
            logger.error("Batch aborted; writing %d completed rows.", len(batch_run.outcomes))
            CsvCodec.write(batch_run.outcomes, self.output_path)
            raise

        batch_run.cancelled = len(batch_run.outcomes) < len(rows)
        CsvCodec.write(batch_run.outcomes, self.output_path)
        logger.info(batch_run.summary())

    @property
    def batch_run(self) -> BatchRun | None:
        """The :class:`BatchRun` from the last call to :meth:`run`, or ``None``."""
        return self._batch_run
