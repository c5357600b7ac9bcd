"""
Geo Converter — Base Tool
==========================
Abstract base class for file-to-file Geo Converter tools.

Design Pattern:
    Template Method — the public ``run()`` method defines a fixed
    pipeline (validate → process → report) that subclasses fill in
    by implementing the abstract methods ``validate_inputs`` and
    ``process``.

Usage:
    Do NOT instantiate this class directly.  Subclass it and implement
    the two abstract methods::

        from geo_converter.base_tool import GeoTool

        class MyTool(GeoTool):
            def validate_inputs(self) -> None:
                ...
            def process(self) -> None:
                ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

# ---------------------------------------------------------------------------
# Package root logger — each module gets its own child logger via
#   logging.getLogger("geo_converter.<module>").
# ---------------------------------------------------------------------------
logger = logging.getLogger("geo_converter")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def configure_logging(verbose: bool = False) -> None:
    """Attach a console handler to the ``geo_converter`` logger once.

    Uses DEBUG level when *verbose* is ``True``, otherwise INFO.
    """
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


class GeoTool(ABC):
    """Abstract base class for input-file → output-file tools.

    Every concrete tool must implement :meth:`validate_inputs` and
    :meth:`process`.  Calling :meth:`run` executes the full pipeline in
    the correct order.

    Attributes:
        input_path: Path to the primary input file.
        output_path: Path where output will be written.
        verbose: When ``True`` the tool logs DEBUG-level messages in
            addition to INFO/WARNING/ERROR.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        verbose: bool = False,
    ) -> None:
        self.input_path: Path = Path(input_path)
        self.output_path: Path = Path(output_path)
        self.verbose: bool = verbose

        configure_logging(self.verbose)

    # ------------------------------------------------------------------
    # Abstract interface — subclasses MUST implement these
    # ------------------------------------------------------------------

    @abstractmethod
    def validate_inputs(self) -> None:
        """Validate all inputs before processing begins.

        Raises:
            InputValidationError: If a required file is missing or a
                column does not exist.
        """

    @abstractmethod
    def process(self) -> None:
        """Execute the core processing logic.

        Called by :meth:`run` after :meth:`validate_inputs` has succeeded.
        Any exception raised here propagates up through :meth:`run`.
        """

    # ------------------------------------------------------------------
    # Template method — the public API callers use
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Execute the full tool pipeline.

        1. :meth:`validate_inputs` — verify all preconditions.
        2. :meth:`process` — perform the work.
        3. :meth:`_report_success` — log the elapsed time and output path.

        Raises:
            Any exception raised by ``validate_inputs`` or ``process``
            propagates unchanged so callers can handle it appropriately.
        """
        logger.info("Starting %s", self.__class__.__name__)
        start = time.perf_counter()

        self.validate_inputs()
        self.process()

        elapsed = time.perf_counter() - start
        self._report_success(elapsed)

    # ------------------------------------------------------------------
    # Protected helpers — subclasses may override if needed
    # ------------------------------------------------------------------

    def _report_success(self, elapsed: float) -> None:
        logger.info(
            "%s completed in %.2fs → %s",
            self.__class__.__name__,
            elapsed,
            self.output_path,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"input_path={self.input_path!r}, "
            f"output_path={self.output_path!r})"
        )
