"""Device factory engine: vehicle device factory data management with SWM mirroring."""

from device_factory.querying.sql import (
    SqlFragment,
    build_like_clause,
    build_order_by_clause,
    build_predicate,
    build_range_clause,
)
from device_factory.swm.session import SwmSessionCache

__all__ = [
    "SqlFragment",
    "build_like_clause",
    "build_order_by_clause",
    "build_predicate",
    "build_range_clause",
    "SwmSessionCache",
]
__version__ = "0.1.0"
