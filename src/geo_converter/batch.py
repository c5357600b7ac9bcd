"""
Geo Converter — Batch Processor
================================
Drives the sequential conversion of many row records through a
:class:`~geo_converter.client.GeocodeClient`.

Rows are processed strictly one after another, in input order, with a
pause after every row to respect the provider's usage policy.  A failing
row never aborts the batch: it becomes a failure
:class:`~geo_converter.models.RowOutcome` carrying the error message.
Only a failure to acquire the row sequence itself aborts the run.

Typical usage::

    from geo_converter.batch import BatchProcessor
    from geo_converter.client import NominatimClient

    processor = BatchProcessor(NominatimClient(user_agent="my-app/1.0"))
    outcomes = processor.run(rows, on_progress=lambda r: print(f"{r:.0%}"))
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Iterable, Mapping

from geo_converter.client import GeocodeClient
from geo_converter.exceptions import (
    BatchAbortedError,
    GeocodingError,
    GeocodingRateLimitError,
    InputValidationError,
    NotFoundError,
    TransportError,
)
from geo_converter.models import Coordinate, LocationQuery, RowOutcome
from geo_converter.pacing import FixedDelay, NoRetry, RateLimiter, RetryPolicy, Sleep

logger = logging.getLogger("geo_converter.batch")

ProgressCallback = Callable[[float], None]
OutcomeCallback = Callable[[RowOutcome], None]


class CancellationToken:
    """Cooperative cancellation flag checked before each row's lookup.

    Thread-safe; may be set from a signal handler or another thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def convert_one(query: LocationQuery, client: GeocodeClient) -> Coordinate:
    """Geocode a single location.

    Errors from the client propagate unwrapped.

    Raises:
        NotFoundError: If the provider has no match.
        TransportError: If the request failed.
    """
    return client.lookup(query.search_string())


class BatchProcessor:
    """Sequential, rate-limited geocoder for many rows.

    Args:
        client: The :class:`GeocodeClient` used for each lookup.
        rate_limiter: Pause policy applied after every row.  Defaults to
                      :class:`~geo_converter.pacing.FixedDelay` of 1 s.
        retry_policy: Retry schedule for transport failures.  Defaults to
                      :class:`~geo_converter.pacing.NoRetry`.
        sleep: Blocking sleep function, injectable for tests.
    """

    def __init__(
        self,
        client: GeocodeClient,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = time.sleep,
    ) -> None:
        self.client = client
        self.rate_limiter: RateLimiter = rate_limiter or FixedDelay()
        self.retry_policy: RetryPolicy = retry_policy or NoRetry()
        self._sleep = sleep

    def run(
        self,
        rows: Iterable[Mapping[str, Any]],
        on_progress: ProgressCallback | None = None,
        rate_limit_delay: float | None = None,
        cancel_token: CancellationToken | None = None,
        on_outcome: OutcomeCallback | None = None,
    ) -> list[RowOutcome]:
        """Geocode every row and return one outcome per row, in order.

        Args:
            rows: Row mappings with ``city``, ``state`` and optional
                  ``neighborhood`` keys; other keys pass through.
            on_progress: Called after each row with
                         ``processed / total``.
            rate_limit_delay: Seconds to pause after each row for this
                              call only; overrides the configured limiter.
            cancel_token: Checked before each lookup.  Once cancelled the
                          outcomes computed so far are returned.
            on_outcome: Called with each outcome as soon as it is known.

        Returns:
            Outcomes in input order, one per processed row.

        Raises:
            BatchAbortedError: If the row sequence cannot be acquired, or
                on any error that is not a row-level geocoding failure.
                Completed outcomes are kept on ``partial_outcomes``.
        """
        records = self._acquire(rows)
        total = len(records)
        limiter = FixedDelay(rate_limit_delay) if rate_limit_delay is not None else self.rate_limiter
        logger.info("Starting batch of %d rows via %s", total, type(self.client).__name__)

        outcomes: list[RowOutcome] = []
        for index, row in enumerate(records, start=1):
            if cancel_token is not None and cancel_token.cancelled:
                logger.warning("Batch cancelled after %d/%d rows", index - 1, total)
                break

            try:
                outcome = self._process_row(row)
                outcomes.append(outcome)
                if outcome.ok:
                    logger.debug("[%d/%d] ✓ %s", index, total, outcome.coordinate)
                else:
                    logger.warning(
                        "[%d/%d] ✗ %s — %s",
                        index, total, outcome.query.label(), outcome.error_message,
                    )

                if on_outcome is not None:
                    on_outcome(outcome)
                if on_progress is not None:
                    on_progress(index / total)
            except Exception as exc:
                # Anything that is not a row-level geocoding error is fatal.
                logger.error("Batch aborted at row %d/%d: %s", index, total, exc)
                raise BatchAbortedError(
                    f"Error processing file: {exc}", partial_outcomes=outcomes
                ) from exc

            limiter.wait(self._sleep)

        succeeded = sum(1 for o in outcomes if o.ok)
        logger.info(
            "Batch complete: %d/%d succeeded, %d failed.",
            succeeded, len(outcomes), len(outcomes) - succeeded,
        )
        return outcomes

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _acquire(rows: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        """Materialise the row sequence once so the total is known."""
        try:
            return list(rows)
        except Exception as exc:
            raise BatchAbortedError(f"Error processing file: {exc}") from exc

    def _process_row(self, row: Mapping[str, Any]) -> RowOutcome:
        """Geocode one row, converting row-level errors to a failure outcome."""
        query = LocationQuery.from_row(row)
        try:
            query.validate()
            coordinate = self._lookup_with_retry(query.search_string())
        except (GeocodingError, InputValidationError) as exc:
            return RowOutcome.failure(row, exc.message)
        return RowOutcome.success(row, coordinate)

    def _lookup_with_retry(self, search: str) -> Coordinate:
        delays = self.retry_policy.delays()
        while True:
            try:
                return self.client.lookup(search)
            except NotFoundError:
                raise
            except TransportError as exc:
                delay = next(delays, None)
                if delay is None:
                    raise
                if isinstance(exc, GeocodingRateLimitError) and exc.retry_after:
                    delay = max(delay, float(exc.retry_after))
                logger.info("Retrying %r in %.1fs after: %s", search, delay, exc.message)
                self._sleep(delay)
