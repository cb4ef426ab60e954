"""Invoice console: list, filter, compose, submit, export and import."""

from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..adapters.base import CrudTransport
from ..domain import constants
from ..domain.dates import now_iso
from ..domain.filters import InvoiceFilter, InvoiceStats, aggregate, filter_invoices
from ..domain.models import ApiResponse, CatalogProduct, Invoice
from ..domain.normalize import normalize_catalog, normalize_invoices
from ..errors import BatchFetchError, NothingToExportError
from .bulk_import import BulkImporter, ImportSummary
from .draft import DraftStore
from .export import EXPORTERS, write_invoice_document
from .notices import NoticeBoard

log = logging.getLogger(__name__)


def _settle(future: "concurrent.futures.Future[ApiResponse]") -> ApiResponse:
    try:
        return future.result()
    except Exception as exc:
        return ApiResponse(error=str(exc) or exc.__class__.__name__)


class InvoiceConsole:
    def __init__(
        self,
        invoices_transport: CrudTransport,
        products_transport: CrudTransport,
        draft: DraftStore,
        notices: Optional[NoticeBoard] = None,
        importer: Optional[BulkImporter] = None,
    ):
        self.invoices_transport = invoices_transport
        self.products_transport = products_transport
        self.draft = draft
        self.notices = notices or NoticeBoard()
        self.importer = importer or BulkImporter(invoices_transport)
        self.invoices: List[Invoice] = []
        self.catalog: List[CatalogProduct] = []
        self.loaded = False

    # ---------- reads ----------
    def refresh(self) -> bool:
        """Reload invoices and the product catalog in parallel.

        The view counts as loaded once both reads have settled, whether or not
        they succeeded. Returns True only when both succeeded.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
            invoices_future = pool.submit(self.invoices_transport.get_all)
            catalog_future = pool.submit(self.products_transport.get_all)
            invoices_resp = _settle(invoices_future)
            catalog_resp = _settle(catalog_future)

        ok = True
        if invoices_resp.error is not None:
            self.notices.error(f"Failed to load invoices: {invoices_resp.error}")
            ok = False
        else:
            self.invoices = normalize_invoices(invoices_resp.data)
        if catalog_resp.error is not None:
            self.notices.error(f"Failed to load products: {catalog_resp.error}")
            ok = False
        else:
            self.catalog = normalize_catalog(catalog_resp.data)
            self.draft.editor.catalog = list(self.catalog)
        self.loaded = True
        log.debug("refresh: %d invoice(s), %d product(s)", len(self.invoices), len(self.catalog))
        return ok

    def view(self, flt: Optional[InvoiceFilter] = None) -> Tuple[List[Invoice], InvoiceStats]:
        subset = filter_invoices(self.invoices, flt or InvoiceFilter())
        return subset, aggregate(subset)

    def find(self, invoice_id: str) -> Optional[Invoice]:
        for invoice in self.invoices:
            if invoice.id == invoice_id:
                return invoice
        return None

    # ---------- writes ----------
    def submit(self, user_id: Optional[str] = None) -> bool:
        """Create or update the drafted invoice.

        On any failure exactly one notice is posted and the draft is kept.
        """
        missing = self.draft.missing_fields(constants.SUBMIT_REQUIRED_FIELDS)
        if missing:
            self.notices.error(f"Please fill in: {', '.join(missing)}")
            return False

        payload = self.draft.payload(user_id)
        try:
            if self.draft.invoice_id is not None:
                payload["updated_at"] = now_iso()
                response = self.invoices_transport.update(self.draft.invoice_id, payload)
                verb = "updated"
            else:
                response = self.invoices_transport.create(payload)
                verb = "created"
        except Exception as exc:
            response = ApiResponse(error=str(exc) or exc.__class__.__name__)
            verb = ""

        if response.error is not None:
            self.notices.error(f"Failed to save invoice: {response.error}")
            return False
        self.notices.success(f"Invoice {payload['invoice_no']} {verb}")
        self.draft.clear()
        self.refresh()
        return True

    def edit(self, invoice: Invoice) -> None:
        self.draft.begin_edit(invoice)
        self.notices.info(f"Editing invoice {invoice.invoice_no}")

    def cancel(self) -> None:
        self.draft.clear()

    def delete(self, invoice_id: str) -> bool:
        response = self.invoices_transport.delete(invoice_id)
        if response.error is not None:
            self.notices.error(f"Failed to delete invoice: {response.error}")
            return False
        self.invoices = [inv for inv in self.invoices if inv.id != invoice_id]
        if self.draft.invoice_id == invoice_id:
            self.draft.clear()
        self.notices.success("Invoice deleted")
        return True

    # ---------- exports / import ----------
    def export(self, kind: str, flt: Optional[InvoiceFilter] = None, out_dir: Path = Path(".")) -> Optional[Path]:
        if kind not in EXPORTERS:
            raise ValueError(f"unknown export kind {kind!r}; expected one of {', '.join(EXPORTERS)}")
        subset, _ = self.view(flt)
        _, writer = EXPORTERS[kind]
        try:
            path = writer(subset, Path(out_dir))
        except NothingToExportError as exc:
            self.notices.warning(str(exc))
            return None
        self.notices.success(f"Exported {len(subset)} invoice(s) to {path.name}")
        return path

    def export_invoice(self, ref: str, out_dir: Path = Path("."), pdf: bool = False) -> Optional[Path]:
        """Write the printable document for one invoice, found by id or invoice number."""
        invoice = self.find(ref) or next((inv for inv in self.invoices if inv.invoice_no == ref), None)
        if invoice is None:
            self.notices.error(f"Invoice not found: {ref}")
            return None
        path = write_invoice_document(invoice, Path(out_dir), pdf=pdf)
        self.notices.success(f"Exported invoice {invoice.invoice_no} to {path.name}")
        return path

    def bulk_import(self, source_url: str, user_id: Optional[str] = None) -> Optional[ImportSummary]:
        try:
            summary = self.importer.run(source_url, user_id)
        except BatchFetchError as exc:
            self.notices.error(str(exc))
            return None
        if summary.invoices is not None:
            self.invoices = summary.invoices
        else:
            self.notices.error(f"Failed to load invoices: {summary.refresh_error}")
        if summary.error_count:
            self.notices.warning(summary.message)
        else:
            self.notices.success(summary.message)
        return summary
