"""
Geo Converter — Input Validators
=================================
Static precondition checks run before a batch starts.

All methods raise an appropriate exception from
:mod:`geo_converter.exceptions` rather than returning booleans, which
keeps ``validate_inputs`` implementations short::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)
            Validators.assert_supported_extension(self.input_path, [".csv"])
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from geo_converter.exceptions import (
    ColumnNotFoundError,
    InputValidationError,
    OutputWriteError,
)


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Raises:
            InputValidationError: If *path* does not exist or is a
                directory rather than a file.
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InputValidationError(
                f"Expected a file but got a directory: '{path}'."
            )

    @staticmethod
    def assert_output_dir_writable(output_path: Path) -> None:
        """Assert that the parent directory of *output_path* is writable.

        Creates the parent directory (and any missing parents) if it does
        not yet exist.

        Raises:
            OutputWriteError: If the parent directory cannot be created.
        """
        parent = Path(output_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_path), str(exc)) from exc

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Assert that *path* has one of the allowed file extensions.

        Args:
            path: File path to check.
            extensions: Allowed extensions, each starting with a dot
                        (e.g. ``[".csv", ".txt"]``).

        Raises:
            InputValidationError: If the extension is not in *extensions*.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        allowed = [ext.lower() for ext in extensions]
        if suffix not in allowed:
            raise InputValidationError(
                f"Unsupported file extension '{suffix}' for '{path.name}'. "
                f"Accepted extensions: {', '.join(allowed)}"
            )

    # ------------------------------------------------------------------
    # Tabular data checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_columns_exist(
        available: Sequence[str],
        required_columns: Sequence[str],
    ) -> None:
        """Assert that all *required_columns* are in the header *available*.

        Raises:
            ColumnNotFoundError: On the first missing column found.

        Example::

            Validators.assert_columns_exist(["city", "state"], ["city", "state"])
        """
        available = list(available)
        for col in required_columns:
            if col not in available:
                raise ColumnNotFoundError(col, available)

    # ------------------------------------------------------------------
    # Numeric settings
    # ------------------------------------------------------------------

    @staticmethod
    def assert_positive(value: float, name: str) -> None:
        """Raise :class:`InputValidationError` unless ``value > 0``."""
        if value <= 0:
            raise InputValidationError(f"{name} must be > 0, got {value}")

    @staticmethod
    def assert_non_negative(value: float, name: str) -> None:
        """Raise :class:`InputValidationError` unless ``value >= 0``."""
        if value < 0:
            raise InputValidationError(f"{name} must be >= 0, got {value}")
