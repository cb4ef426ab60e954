"""Canonical records consumed by every part of the console."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass
class Product:
    name: str
    quantity: int = 1
    price: float = 0.0
    serial_no: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "productName": self.name,
            "productQuantity": self.quantity,
            "productPrice": self.price,
        }
        if self.serial_no:
            data["productSerialNo"] = self.serial_no
        return data


@dataclass
class Invoice:
    id: str
    invoice_no: str = ""
    date: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: str = ""
    customer_address: str = ""
    gst: bool = False
    po: bool = False
    quotation: bool = False
    gst_name: Optional[str] = None
    gst_no: Optional[str] = None
    gst_phone: Optional[str] = None
    gst_email: Optional[str] = None
    gst_address: Optional[str] = None
    products: List[Product] = field(default_factory=list)
    delivered_by: Optional[str] = None
    delivery_date: Optional[str] = None
    paid_status: str = "unpaid"
    payment_type: str = ""
    aquakart_online_user: bool = False
    aquakart_invoice: bool = False
    total_amount: float = 0
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["products"] = [p.to_dict() for p in self.products]
        return data

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass
class CatalogProduct:
    id: str
    name: str
    price: float = 0.0
    dp_price: Optional[float] = None
    sku: Optional[str] = None


@dataclass
class ApiResponse:
    """``{data, error}`` envelope returned by every CRUD transport call."""

    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
