"""
Geo Converter — CLI Entry Point
================================
Installed as the ``geo-convert`` command via ``pyproject.toml``.

Usage::

    # One location
    geo-convert single --city Austin --state TX --neighborhood Downtown

    # A whole CSV (columns: city, state, neighborhood optional)
    geo-convert batch --input data/locations.csv --output-dir output/

Press Ctrl-C during a batch to stop early; rows finished so far are
still written to the results file.
"""

from __future__ import annotations

import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, NoReturn, Sequence

import click

from geo_converter.base_tool import configure_logging
from geo_converter.batch import CancellationToken, convert_one
from geo_converter.config import GeocoderConfig
from geo_converter.converter import BatchConverter
from geo_converter.csv_codec import DEFAULT_FILENAME
from geo_converter.exceptions import BatchAbortedError, GeoConverterError
from geo_converter.models import LocationQuery, RowOutcome

_PROGRESS_STEPS = 1000


def _provider_options(func):
    """Options shared by every command that talks to the provider."""
    options = [
        click.option("--base-url", default=None,
                     help="Nominatim search endpoint (env: GEO_CONVERTER_BASE_URL)."),
        click.option("--user-agent", default=None,
                     help="User-Agent sent to the provider (env: GEO_CONVERTER_USER_AGENT)."),
        click.option("--timeout", default=None, type=float,
                     help="Per-request timeout in seconds (env: GEO_CONVERTER_TIMEOUT)."),
        click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config(**overrides: object) -> GeocoderConfig:
    return GeocoderConfig.from_env().with_overrides(**overrides)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group(name="geo-convert", help="Convert city/state/neighborhood locations to coordinates.")
def cli() -> None:
    """Command group; see ``single`` and ``batch``."""


# ---------------------------------------------------------------------------
# Single location
# ---------------------------------------------------------------------------


@cli.command(name="single", help="Convert one location to coordinates.")
@click.option("--city", required=True, help="City name.")
@click.option("--state", required=True, help="State or region.")
@click.option("--neighborhood", default="", help="Optional neighborhood.")
@_provider_options
def single(
    city: str,
    state: str,
    neighborhood: str,
    base_url: str | None,
    user_agent: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    configure_logging(verbose)
    try:
        config = _load_config(base_url=base_url, user_agent=user_agent, timeout=timeout)
        query = LocationQuery(city=city, state=state, neighborhood=neighborhood)
        query.validate()
        client = config.build_client()
        try:
            coordinate = convert_one(query, client)
        finally:
            client.close()
    except GeoConverterError as exc:
        _fail(exc.message)

    click.echo(f"Latitude: {coordinate.latitude}")
    click.echo(f"Longitude: {coordinate.longitude}")
    click.echo(f"Found Location: {coordinate.resolved_name}")


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    """Route SIGINT to *token* for the duration of the block."""

    def _handler(signum: int, frame: object) -> None:
        click.echo("\nCancelling after the current row...", err=True)
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _render_table(outcomes: Sequence[RowOutcome]) -> None:
    """Echo a Location / Coordinates / Status table."""
    rows = [
        (
            o.query.label(),
            f"{o.coordinate.latitude}, {o.coordinate.longitude}" if o.coordinate else "-",
            o.status.display,
        )
        for o in outcomes
    ]
    headers = ("LOCATION", "COORDINATES", "STATUS")
    widths = [max([len(h)] + [len(r[i]) for r in rows]) for i, h in enumerate(headers)]
    line = "  ".join("{:<%d}" % w for w in widths)
    click.echo(line.format(*headers))
    for row in rows:
        click.echo(line.format(*row))


@cli.command(name="batch", help="Convert every row of a CSV file and write a results CSV.")
@click.option(
    "--input", "-i", "input_path",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    help="CSV with columns: city, state, neighborhood (optional).",
)
@click.option(
    "--output", "-o", "output_path",
    default=None,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help=f"Results file path. Defaults to <output-dir>/{DEFAULT_FILENAME}.",
)
@click.option(
    "--output-dir",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    help="Directory for the results file when --output is not given.",
)
@click.option("--rate-limit", default=None, type=float,
              help="Seconds to wait after each row (env: GEO_CONVERTER_RATE_LIMIT, default 1.0).")
@click.option("--max-retries", default=None, type=int,
              help="Retries for network failures (env: GEO_CONVERTER_MAX_RETRIES, default 0).")
@click.option("--table/--no-table", default=True, show_default=True,
              help="Print the per-row results table.")
@_provider_options
def batch(
    input_path: Path,
    output_path: Path | None,
    output_dir: Path,
    rate_limit: float | None,
    max_retries: int | None,
    table: bool,
    base_url: str | None,
    user_agent: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    target = output_path or output_dir / DEFAULT_FILENAME
    token = CancellationToken()

    try:
        config = _load_config(
            base_url=base_url,
            user_agent=user_agent,
            timeout=timeout,
            rate_limit_delay=rate_limit,
            max_retries=max_retries,
        )
    except GeoConverterError as exc:
        _fail(exc.message)

    client = config.build_client()
    try:
        with click.progressbar(length=_PROGRESS_STEPS, label="Geocoding") as bar:
            def _advance(ratio: float) -> None:
                bar.update(int(ratio * _PROGRESS_STEPS) - bar.pos)

            tool = BatchConverter(
                input_path=input_path,
                output_path=target,
                client=client,
                rate_limiter=config.build_rate_limiter(),
                retry_policy=config.build_retry_policy(),
                on_progress=_advance,
                cancel_token=token,
                verbose=verbose,
            )
            try:
                with _cancel_on_interrupt(token):
                    tool.run()
            except BatchAbortedError as exc:
                _fail(f"{exc.message} ({len(exc.partial_outcomes)} completed rows written to {target})")
            except GeoConverterError as exc:
                _fail(exc.message)
    finally:
        client.close()

    batch_run = tool.batch_run
    if batch_run is None:
        return
    if table and batch_run.outcomes:
        _render_table(batch_run.outcomes)
    click.echo(f"\n{batch_run.summary()}")
    click.echo(f"Results written to: {target}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
