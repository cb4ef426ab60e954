"""Line-item editor for an invoice in progress.

The editor owns the committed product lines plus one staging slot (the
"add product" row). It moves between three states:

* ``idle``      - staging slot empty, no line selected
* ``composing`` - staging slot holds a line that is not committed yet
* ``editing``   - staging slot was loaded from ``products[editing_index]``

The invoice total is never cached; :attr:`LineItemEditor.total` recomputes it
from the committed lines on every read.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..domain.models import CatalogProduct, Product
from ..domain.money import compute_total
from ..domain.normalize import normalize_product, to_amount, to_quantity, to_text

log = logging.getLogger(__name__)

IDLE = "idle"
COMPOSING = "composing"
EDITING = "editing"


def empty_staging() -> Product:
    return Product(name="", quantity=1, price=0, serial_no="")


def staging_to_dict(line: Product) -> Dict[str, Any]:
    return {
        "productName": line.name,
        "productQuantity": line.quantity,
        "productPrice": line.price,
        "productSerialNo": line.serial_no or "",
    }


def staging_from_dict(raw: Any) -> Product:
    if not isinstance(raw, dict):
        return empty_staging()
    return Product(
        name=to_text(raw.get("productName")) or "",
        quantity=to_quantity(raw.get("productQuantity")) or 1,
        price=to_amount(raw.get("productPrice")) or 0,
        serial_no=to_text(raw.get("productSerialNo")) or "",
    )


def find_catalog_product(catalog: Iterable[CatalogProduct], name: str) -> Optional[CatalogProduct]:
    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    for product in catalog:
        if product.name.strip().lower() == wanted:
            return product
    return None


class LineItemEditor:
    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        catalog: Optional[Iterable[CatalogProduct]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.products: List[Product] = [replace(p) for p in products or []]
        self.catalog: List[CatalogProduct] = list(catalog or [])
        self.staging: Product = empty_staging()
        self.editing_index: Optional[int] = None
        self.on_change = on_change

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    @property
    def state(self) -> str:
        if self.editing_index is not None:
            return EDITING
        if self.staging != empty_staging():
            return COMPOSING
        return IDLE

    @property
    def total(self) -> float:
        return compute_total(self.products)

    def restore(self, products: Iterable[Any], staging: Any = None, editing_index: Any = None) -> None:
        """Load persisted state without firing ``on_change``."""
        self.products = [
            p if isinstance(p, Product) else normalize_product(p)
            for p in products
            if isinstance(p, (Product, dict))
        ]
        self.staging = staging if isinstance(staging, Product) else staging_from_dict(staging)
        if isinstance(editing_index, int) and 0 <= editing_index < len(self.products):
            self.editing_index = editing_index
        else:
            self.editing_index = None

    def set_staging(self, **fields: Any) -> None:
        """Apply keystrokes to the staging slot (``name``, ``quantity``, ``price``, ``serial_no``)."""
        line = self.staging
        if "name" in fields:
            line = replace(line, name=str(fields["name"] or ""))
        if "quantity" in fields:
            line = replace(line, quantity=to_quantity(fields["quantity"]) or 1)
        if "price" in fields:
            line = replace(line, price=to_amount(fields["price"]) or 0)
        if "serial_no" in fields:
            line = replace(line, serial_no=str(fields["serial_no"] or ""))
        self.staging = line
        self._changed()

    def select(self, name: str) -> Optional[CatalogProduct]:
        """Pick a product by name; a catalog hit fills in its price."""
        match = find_catalog_product(self.catalog, name)
        if match is not None:
            self.staging = replace(self.staging, name=match.name, price=match.price)
        else:
            self.staging = replace(self.staging, name=name or "", price=0)
        self._changed()
        return match

    def commit(self) -> bool:
        line = self.staging
        if not line.name.strip() or line.price <= 0:
            log.debug("staging line rejected: name=%r price=%r", line.name, line.price)
            return False
        committed = Product(
            name=line.name.strip(),
            quantity=line.quantity,
            price=line.price,
            serial_no=(line.serial_no or "").strip() or None,
        )
        if self.editing_index is not None:
            self.products[self.editing_index] = committed
        else:
            self.products.append(committed)
        self.staging = empty_staging()
        self.editing_index = None
        self._changed()
        return True

    def edit(self, index: int) -> None:
        if not 0 <= index < len(self.products):
            raise IndexError(f"no product line at index {index}")
        line = self.products[index]
        self.staging = replace(line, serial_no=line.serial_no or "")
        self.editing_index = index
        self._changed()

    def cancel_edit(self) -> None:
        self.staging = empty_staging()
        self.editing_index = None
        self._changed()

    def remove(self, index: int) -> Product:
        if not 0 <= index < len(self.products):
            raise IndexError(f"no product line at index {index}")
        if self.editing_index == index:
            self.staging = empty_staging()
            self.editing_index = None
        elif self.editing_index is not None and index < self.editing_index:
            self.editing_index -= 1
        removed = self.products.pop(index)
        self._changed()
        return removed
