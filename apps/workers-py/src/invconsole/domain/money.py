"""GST tax-backout and money formatting helpers."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from . import constants


def _finite(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def base_price(total: float) -> int:
    """Pre-tax amount contained in a GST-inclusive ``total``."""
    return math.floor(_finite(total) / (1 + constants.GST_RATE))


def gst_value(total: float) -> int:
    """GST contained in a GST-inclusive ``total``, derived from :func:`base_price`."""
    return math.floor(base_price(total) * constants.GST_RATE)


def line_total(product) -> float:
    return product.price * product.quantity


def compute_total(products: Iterable) -> float:
    """Sum of ``price * quantity`` over product lines."""
    return sum((line_total(p) for p in products), 0)


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_amount(value) -> str:
    """Render ``value`` as rupees with Indian digit grouping and no paise."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return f"{constants.CURRENCY_SYMBOL}0"
    if not math.isfinite(number):
        return f"{constants.CURRENCY_SYMBOL}0"
    rounded = int(round(number))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{constants.CURRENCY_SYMBOL}{_group_indian(str(abs(rounded)))}"


def format_count(value) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "0"
    if not math.isfinite(number):
        return "0"
    return str(int(number)) if number.is_integer() else str(number)


def format_number(value) -> str:
    """Plain CSV number: whole values without a decimal point, others with two."""
    number = _finite(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}"
