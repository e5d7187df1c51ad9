"""Currency parsing for integer-denominated statements."""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation

_BLANK_MARKERS = {"", "-", "--", "—", "–"}
_DASHES = str.maketrans({"–": "-", "—": "-", "−": "-", "－": "-"})
_CURRENCY_MARKERS = ("KRW", "krw", "₩", "￦", "$", "원")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def is_blank(value: object) -> bool:
    """True for ``None`` and cells that only carry an empty marker."""

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _BLANK_MARKERS
    return False


def parse_currency(value: object) -> int:
    """Parse a currency cell into an integer amount.

    Accepts numbers as well as strings such as ``"1,234,000"``, ``"₩ 5,000"``,
    ``"-93,000,000"``, ``"(4,700)"`` or ``"12,000원"``. Thousands separators
    and currency markers are stripped. Amounts with a non-zero fractional
    part raise ``ValueError`` because statements are integer-denominated.
    """

    if isinstance(value, bool):
        raise ValueError(f"Boolean is not an amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return _to_int(Decimal(str(value)), value)
    if value is None:
        raise ValueError("Empty amount")

    cleaned = unicodedata.normalize("NFKC", str(value)).strip().translate(_DASHES)
    for marker in _CURRENCY_MARKERS:
        cleaned = cleaned.replace(marker, "")
    cleaned = cleaned.replace(",", "").replace(" ", "")

    negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1]
    if cleaned.startswith("-"):
        negative = True
        cleaned = cleaned[1:]
    elif cleaned.startswith("+"):
        cleaned = cleaned[1:]
    elif cleaned.endswith("-"):
        negative = True
        cleaned = cleaned[:-1]

    if not _NUMBER_RE.fullmatch(cleaned):
        raise ValueError(f"Not a currency amount: {value!r}")
    try:
        amount = _to_int(Decimal(cleaned), value)
    except InvalidOperation as exc:  # pragma: no cover - regex guards the format
        raise ValueError(f"Not a currency amount: {value!r}") from exc
    return -amount if negative else amount


def normalize_token(value: str) -> str:
    """Normalise text for header/alias comparisons.

    Applies NFKC (full-width forms, compatibility jamo), case-folds and drops
    every whitespace character, so ``"거래 후 잔액"`` and ``"거래후잔액"`` compare
    equal.
    """

    cleaned = unicodedata.normalize("NFKC", value or "").casefold()
    return "".join(cleaned.split())


def _to_int(amount: Decimal, original: object) -> int:
    if not amount.is_finite():
        raise ValueError(f"Not a currency amount: {original!r}")
    if amount != amount.to_integral_value():
        raise ValueError(f"Fractional amount in integer currency: {original!r}")
    return int(amount)
