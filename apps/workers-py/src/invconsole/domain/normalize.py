"""Map loosely-shaped invoice, product and catalog records onto canonical models.

Every canonical field is resolved through :func:`first_defined` over a fixed
candidate list from :mod:`invconsole.domain.constants`, so precedence stays
auditable per field. Nothing here raises on bad input: missing or unusable
values fall back to documented defaults.
"""

from __future__ import annotations

import math
import re
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from . import constants
from .dates import now_iso
from .models import CatalogProduct, Invoice, Product

Normalizer = Callable[[Any], Any]

_NUMBER_JUNK = re.compile(r"[^\d.]")
_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off", ""}


# ---------- value normalizers (None means "not usable, keep looking") ----------
def to_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def to_number(value: Any) -> Optional[float]:
    """Numbers pass through; strings lose currency symbols and separators but keep a leading minus."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        cleaned = _NUMBER_JUNK.sub("", text)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
        if text.startswith("-"):
            number = -number
    else:
        return None
    return number if math.isfinite(number) else None


def to_amount(value: Any) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    return int(number) if number.is_integer() else number


def to_positive_amount(value: Any) -> Optional[float]:
    amount = to_amount(value)
    return amount if amount is not None and amount > 0 else None


def to_quantity(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None:
        return None
    quantity = int(math.floor(number))
    return quantity if quantity >= 1 else None


def to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return None
    if isinstance(value, dict):
        # a populated nested block (e.g. ``gst: {...}``) switches the flag on
        return bool(value)
    return None


def to_address(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        parts = [to_text(value.get(key)) for key in constants.ADDRESS_PART_KEYS]
        joined = ", ".join(p for p in parts if p)
        return joined or None
    return to_text(value)


def to_paid_status(value: Any) -> Optional[str]:
    text = to_text(value)
    if text is None:
        return None
    return constants.PAID_STATUS_ALIASES.get(text.lower(), "unpaid")


def to_payment_type(value: Any) -> Optional[str]:
    text = to_text(value)
    if text is None:
        return None
    return text.lower().replace(" ", "_")


def to_date_text(value: Any) -> Optional[str]:
    if hasattr(value, "isoformat") and not isinstance(value, str):
        return value.isoformat()
    return to_text(value)


# ---------- candidate-list resolver ----------
def first_defined(
    record: Mapping[str, Any],
    keys: Sequence[str],
    normalizer: Normalizer = to_text,
    default: Any = None,
) -> Any:
    """Return the first ``normalizer(record[key])`` that is not None."""
    if not isinstance(record, Mapping):
        return default
    for key in keys:
        if key not in record:
            continue
        value = normalizer(record[key])
        if value is not None:
            return value
    return default


def first_block(record: Mapping[str, Any], keys: Sequence[str]) -> Dict[str, Any]:
    for key in keys:
        value = record.get(key)
        if isinstance(value, dict):
            return value
    return {}


def first_array(record: Mapping[str, Any], keys: Sequence[str]) -> List[Any]:
    for key in keys:
        value = record.get(key)
        if isinstance(value, list):
            return value
    return []


def _resolve_block_fields(
    record: Mapping[str, Any],
    block: Mapping[str, Any],
    table: Mapping[str, tuple],
    normalizers: Optional[Mapping[str, Normalizer]] = None,
) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    normalizers = normalizers or {}
    for name, (flat_keys, nested_keys) in table.items():
        norm = normalizers.get(name, to_text)
        value = first_defined(record, flat_keys, norm)
        if value is None:
            value = first_defined(block, nested_keys, norm)
        out[name] = value
    return out


# ---------- products ----------
def line_unit_price(raw: Mapping[str, Any], quantity: int) -> float:
    price = first_defined(raw, constants.PRODUCT_PRICE_KEYS, to_positive_amount)
    if price is not None:
        return price
    line_total = first_defined(raw, constants.PRODUCT_LINE_TOTAL_KEYS, to_positive_amount)
    if line_total is not None:
        return to_amount(line_total / quantity)
    return 0


def normalize_product(raw: Mapping[str, Any]) -> Product:
    quantity = first_defined(raw, constants.PRODUCT_QUANTITY_KEYS, to_quantity, 1)
    return Product(
        name=first_defined(raw, constants.PRODUCT_NAME_KEYS, to_text, constants.DEFAULT_PRODUCT_NAME),
        quantity=quantity,
        price=line_unit_price(raw, quantity),
        serial_no=first_defined(raw, constants.PRODUCT_SERIAL_KEYS, to_text),
    )


def normalize_products(record: Mapping[str, Any]) -> List[Product]:
    lines = first_array(record, constants.PRODUCT_ARRAY_KEYS)
    return [normalize_product(line) for line in lines if isinstance(line, dict)]


# ---------- invoices ----------
def fallback_invoice_id() -> str:
    return f"inv-{uuid.uuid4().hex[:10]}"


def resolve_total(record: Mapping[str, Any], products: Iterable[Product]) -> float:
    """Positive line-item sum wins; otherwise the upstream total; otherwise 0."""
    computed = to_amount(sum((p.price * p.quantity for p in products), 0))
    if computed:
        return computed
    return first_defined(record, constants.TOTAL_KEYS, to_amount, 0)


def normalize_invoice(record: Any) -> Invoice:
    """Produce exactly one canonical :class:`Invoice` from ``record``."""
    if not isinstance(record, Mapping):
        record = {}

    customer = _resolve_block_fields(
        record,
        first_block(record, constants.CUSTOMER_BLOCK_KEYS),
        constants.CUSTOMER_FIELDS,
        {"customer_address": to_address},
    )
    gst_flag = first_defined(record, constants.GST_FLAG_KEYS, to_bool, False)
    gst_fields = _resolve_block_fields(
        record,
        first_block(record, constants.GST_BLOCK_KEYS),
        constants.GST_FIELDS,
        {"gst_address": to_address},
    )
    if not gst_flag:
        gst_fields = {name: None for name in gst_fields}
    elif gst_fields["gst_no"]:
        gst_fields["gst_no"] = gst_fields["gst_no"].upper()
    delivery = _resolve_block_fields(
        record,
        first_block(record, constants.DELIVERY_BLOCK_KEYS),
        constants.DELIVERY_FIELDS,
        {"delivery_date": to_date_text},
    )
    products = normalize_products(record)

    return Invoice(
        id=first_defined(record, constants.ID_KEYS, to_text) or fallback_invoice_id(),
        invoice_no=first_defined(record, constants.INVOICE_NO_KEYS, to_text, ""),
        date=first_defined(record, constants.DATE_KEYS, to_date_text) or now_iso(),
        customer_name=customer["customer_name"] or "",
        customer_phone=customer["customer_phone"] or "",
        customer_email=customer["customer_email"] or "",
        customer_address=customer["customer_address"] or "",
        gst=gst_flag,
        po=first_defined(record, constants.PO_FLAG_KEYS, to_bool, False),
        quotation=first_defined(record, constants.QUOTATION_FLAG_KEYS, to_bool, False),
        products=products,
        paid_status=first_defined(record, constants.PAID_STATUS_KEYS, to_paid_status, "unpaid"),
        payment_type=first_defined(record, constants.PAYMENT_TYPE_KEYS, to_payment_type, ""),
        aquakart_online_user=first_defined(record, constants.ONLINE_USER_KEYS, to_bool, False),
        aquakart_invoice=first_defined(record, constants.ONLINE_INVOICE_KEYS, to_bool, False),
        total_amount=resolve_total(record, products),
        created_at=first_defined(record, constants.CREATED_AT_KEYS, to_date_text) or now_iso(),
        **gst_fields,
        **delivery,
    )


def batch_records(payload: Any) -> List[Any]:
    """Unwrap a list of records from a bare array or a response envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in constants.BATCH_LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
            if isinstance(value, dict):
                nested = batch_records(value)
                if nested:
                    return nested
    return []


def normalize_invoices(payload: Any) -> List[Invoice]:
    return [normalize_invoice(r) for r in batch_records(payload) if isinstance(r, dict)]


def to_payload(invoice: Invoice, include_id: bool = True) -> Dict[str, Any]:
    """Canonical invoice back to the CRM create/update/upsert body."""
    payload = invoice.to_dict()
    payload.pop("created_at", None)
    if not include_id:
        payload.pop("id", None)
    return payload


# ---------- catalog ----------
def _walk(payload: Any, path: Sequence[str]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def normalize_catalog_product(raw: Mapping[str, Any], index: int = 0) -> CatalogProduct:
    price = None
    if first_defined(raw, constants.CATALOG_DISCOUNT_FLAG_KEYS, to_bool, False):
        price = first_defined(raw, constants.CATALOG_DISCOUNT_PRICE_KEYS, to_amount)
    if price is None:
        price = first_defined(raw, constants.CATALOG_PRICE_KEYS, to_amount, 0)
    return CatalogProduct(
        id=first_defined(raw, constants.CATALOG_ID_KEYS, to_text) or f"product-{index}",
        name=first_defined(raw, constants.CATALOG_NAME_KEYS, to_text, constants.DEFAULT_PRODUCT_NAME),
        price=price,
        dp_price=first_defined(raw, constants.CATALOG_DP_PRICE_KEYS, to_amount),
        sku=first_defined(raw, constants.CATALOG_SKU_KEYS, to_text),
    )


def normalize_catalog(payload: Any) -> List[CatalogProduct]:
    raw_products: List[Any] = []
    for path in constants.CATALOG_LIST_PATHS:
        candidate = _walk(payload, path)
        if isinstance(candidate, list):
            raw_products = candidate
            break
    return [
        normalize_catalog_product(p, idx)
        for idx, p in enumerate(raw_products)
        if isinstance(p, dict)
    ]
