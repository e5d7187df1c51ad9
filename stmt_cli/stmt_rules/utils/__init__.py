"""Cell-level parsing helpers used during normalisation."""

from __future__ import annotations

from .amounts import is_blank, normalize_token, parse_currency
from .dates import normalize_time, split_datetime

__all__ = [
    "is_blank",
    "normalize_time",
    "normalize_token",
    "parse_currency",
    "split_datetime",
]
