"""Core module - configuration, dates, record store client, units, logging."""

from feedlot.core import client, dates, units
from feedlot.core.client import (
    RecordStoreError,
    RetryableError,
    get_rows,
    request,
    request_with_retry,
)
from feedlot.core.config import Settings, get_cache_dir, settings
from feedlot.core.dates import (
    DateInterval,
    days_between,
    days_between_inclusive,
    intersect,
    iter_days,
    to_day,
)
from feedlot.core.units import (
    format_money,
    format_rate,
    format_weight,
    get_weight_unit,
    is_imperial,
    weight_kg_to_display,
)

__all__ = [
    "client",
    "dates",
    "units",
    "Settings",
    "settings",
    "get_cache_dir",
    "request",
    "request_with_retry",
    "get_rows",
    "RecordStoreError",
    "RetryableError",
    # Calendar-day helpers
    "DateInterval",
    "to_day",
    "days_between",
    "days_between_inclusive",
    "intersect",
    "iter_days",
    # Display helpers
    "format_money",
    "format_rate",
    "format_weight",
    "get_weight_unit",
    "is_imperial",
    "weight_kg_to_display",
]
