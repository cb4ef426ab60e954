"""Recoverable in-progress invoice draft.

``DraftStore`` owns the form fields, the line-item editor (committed lines,
staging slot, index under edit) and the id of the invoice being edited. Every
mutation serializes the full state into one storage key, but only after
:meth:`DraftStore.load` has hydrated from storage. Saves requested before
that are dropped.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..adapters.base import KeyValueStorage
from ..domain import constants
from ..domain.dates import date_part, today_iso
from ..domain.models import CatalogProduct, Invoice
from ..domain.normalize import to_bool
from .line_items import LineItemEditor, empty_staging, staging_to_dict

log = logging.getLogger(__name__)

BOOL_FIELDS = ("gst", "po", "quotation", "aquakart_online_user", "aquakart_invoice")


def default_form(today: Optional[str] = None) -> Dict[str, Any]:
    """Blank invoice form, excluding the product lines."""
    return {
        "invoice_no": "",
        "date": today or today_iso(),
        "customer_name": "",
        "customer_phone": "",
        "customer_email": "",
        "customer_address": "",
        "gst": False,
        "po": False,
        "quotation": False,
        "gst_name": "",
        "gst_no": "",
        "gst_phone": "",
        "gst_email": "",
        "gst_address": "",
        "delivered_by": "",
        "delivery_date": "",
        "paid_status": "unpaid",
        "payment_type": "cash",
        "aquakart_online_user": False,
        "aquakart_invoice": False,
    }


def _coerce(name: str, value: Any, fallback: Any) -> Any:
    if name in BOOL_FIELDS:
        parsed = to_bool(value)
        return fallback if parsed is None else parsed
    if value is None or isinstance(value, (dict, list, bool)):
        return fallback
    return str(value)


class DraftStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = constants.DRAFT_STORAGE_KEY,
        catalog: Optional[Iterable[CatalogProduct]] = None,
        today: Callable[[], str] = today_iso,
    ):
        self.storage = storage
        self.key = key
        self._today = today
        self.form: Dict[str, Any] = default_form(today())
        self.invoice_id: Optional[str] = None
        self.editor = LineItemEditor(catalog=catalog, on_change=self.save)
        self.hydrated = False

    # ---------- persistence ----------
    def load(self) -> bool:
        """Hydrate from storage; returns True when a stored draft was applied."""
        raw = self.storage.get_item(self.key)
        restored = False
        self.form = default_form(self._today())
        self.invoice_id = None
        self.editor.restore([], None, None)
        if raw:
            try:
                stored = json.loads(raw)
            except ValueError:
                log.warning("Ignoring unreadable draft under %r", self.key)
                stored = None
            if isinstance(stored, dict):
                self._apply(stored)
                restored = True
        self.hydrated = True
        return restored

    def _apply(self, stored: Dict[str, Any]) -> None:
        form_data = stored.get("formData")
        if not isinstance(form_data, dict):
            form_data = {}
        for name, fallback in self.form.items():
            if name in form_data:
                self.form[name] = _coerce(name, form_data[name], fallback)
        products = form_data.get("products")
        self.editor.restore(
            products if isinstance(products, list) else [],
            stored.get("productForm"),
            stored.get("editingProductIndex"),
        )
        invoice_id = stored.get("editingInvoiceId")
        self.invoice_id = str(invoice_id) if invoice_id not in (None, "") else None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "formData": self.form_data,
            "productForm": staging_to_dict(self.editor.staging),
            "editingProductIndex": self.editor.editing_index,
            "editingInvoiceId": self.invoice_id,
        }

    def save(self) -> bool:
        if not self.hydrated:
            log.debug("draft save skipped before hydration")
            return False
        self.storage.set_item(self.key, json.dumps(self.snapshot(), ensure_ascii=False, sort_keys=True))
        return True

    def clear(self) -> None:
        """Reset to the blank template and drop the stored draft together."""
        self.form = default_form(self._today())
        self.invoice_id = None
        self.editor.restore([], None, None)
        self.storage.remove_item(self.key)
        self.hydrated = True

    # ---------- form state ----------
    @property
    def form_data(self) -> Dict[str, Any]:
        data = dict(self.form)
        data["products"] = [p.to_dict() for p in self.editor.products]
        return data

    @property
    def is_editing_invoice(self) -> bool:
        return self.invoice_id is not None

    @property
    def is_dirty(self) -> bool:
        blank = default_form(self.form["date"])
        return (
            self.form != blank
            or bool(self.editor.products)
            or self.editor.staging != empty_staging()
            or self.invoice_id is not None
        )

    def update(self, **fields: Any) -> None:
        unknown = [name for name in fields if name not in self.form]
        if unknown:
            raise KeyError(f"unknown draft field(s): {', '.join(unknown)}")
        for name, value in fields.items():
            value = _coerce(name, value, self.form[name])
            if name == "gst_no":
                value = value.upper()
            self.form[name] = value
        self.save()

    def begin_edit(self, invoice: Invoice) -> None:
        """Load an existing invoice into the form for editing."""
        form = default_form(self._today())
        source = invoice.to_dict()
        for name, fallback in form.items():
            form[name] = _coerce(name, source.get(name), "" if name not in BOOL_FIELDS else fallback)
        for name in ("date", "delivery_date"):
            if form[name]:
                form[name] = date_part(form[name])
        self.form = form
        self.invoice_id = invoice.id
        self.editor.restore(invoice.products)
        self.save()

    def missing_fields(self, required: Optional[List[str]] = None) -> List[str]:
        names = required or constants.SUBMIT_REQUIRED_FIELDS
        return [name for name in names if not str(self.form.get(name) or "").strip()]

    def payload(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Submit body; the total always comes from the committed lines."""
        data = self.form_data
        data["total_amount"] = self.editor.total
        if user_id is not None:
            data["user_id"] = user_id
        return data
