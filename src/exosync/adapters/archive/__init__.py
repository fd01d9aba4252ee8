"""Public interface for the NASA Exoplanet Archive adapter."""

from __future__ import annotations

from .client import TapCatalogSource, build_disposition_query, build_record_query
from .schema import DispositionRow

__all__ = [
    "DispositionRow",
    "TapCatalogSource",
    "build_disposition_query",
    "build_record_query",
]
