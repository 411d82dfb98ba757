"""Parsing helpers for values typed into freight forms.

Forms come from Brazilian users, so decimals may use a comma
("10,5") and money may carry thousand separators ("1.234,56").
Every parser returns ``None`` for blank or unparseable input and
leaves range checks to the caller.
"""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


_UF_PATTERN = re.compile(r"^[A-Z]{2}$")
_NON_DIGITS = re.compile(r"\D")
_TRUE_FLAGS = {"on", "true", "1", "yes", "sim"}


def clean_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value) -> str | None:
    return clean_text(value) or None


def normalize_zip(value) -> str:
    return _NON_DIGITS.sub("", clean_text(value))


def parse_uf(value) -> str | None:
    uf = clean_text(value).upper()
    if not _UF_PATTERN.match(uf):
        return None
    return uf


def parse_number_br(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = clean_text(value)
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_money_cents(value) -> int | None:
    amount = parse_number_br(value)
    if amount is None:
        return None
    try:
        cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return int(cents)


def parse_int_strict(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = parse_number_br(value) if not isinstance(value, float) else value
    if number is None or not math.isfinite(number) or not float(number).is_integer():
        return None
    return int(number)


def parse_optional_int(value) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return clean_text(value).lower() in _TRUE_FLAGS


def parse_iso_date(value) -> str | None:
    text = clean_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return None


def positive_or_none(value: float | None) -> bool:
    """True when a value is absent or a finite number above zero."""
    if value is None:
        return True
    return math.isfinite(value) and value > 0
