"""
Geo Converter
==============
Convert city / state / neighborhood descriptions into coordinates, one at
a time or in bulk from a CSV file, and export the enriched rows.

Public API::

    from geo_converter import BatchProcessor, NominatimClient, LocationQuery
"""

from geo_converter.batch import BatchProcessor, CancellationToken, convert_one
from geo_converter.client import GeocodeClient, NominatimClient
from geo_converter.config import GeocoderConfig
from geo_converter.converter import BatchConverter
from geo_converter.csv_codec import CsvCodec
from geo_converter.models import (
    BatchRun,
    Coordinate,
    LocationQuery,
    RowOutcome,
    RowStatus,
)

__all__ = [
    "BatchConverter",
    "BatchProcessor",
    "BatchRun",
    "CancellationToken",
    "Coordinate",
    "CsvCodec",
    "GeocodeClient",
    "GeocoderConfig",
    "LocationQuery",
    "NominatimClient",
    "RowOutcome",
    "RowStatus",
    "convert_one",
]
__version__ = "1.0.0"
