"""One-shot pull-and-upsert of an upstream invoice batch.

Each record is mapped to a :class:`RecordResult` on its own; the batch is
never aborted by a single bad record. Counts come from partitioning the
results after every record has settled, so running records on a thread pool
does not change the accounting.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..adapters.base import CrudTransport
from ..adapters.http import fetch_batch
from ..domain import constants
from ..domain.models import Invoice
from ..domain.normalize import batch_records, first_defined, normalize_invoice, normalize_invoices, to_payload, to_text
from ..errors import InvalidRecordError

log = logging.getLogger(__name__)

BatchFetcher = Callable[..., Any]


@dataclass
class RecordResult:
    index: int
    ok: bool
    invoice_no: str = ""
    error: Optional[str] = None


@dataclass
class ImportSummary:
    success_count: int = 0
    error_count: int = 0
    failures: List[RecordResult] = field(default_factory=list)
    invoices: Optional[List[Invoice]] = None
    refresh_error: Optional[str] = None

    @property
    def total(self) -> int:
        return self.success_count + self.error_count

    @property
    def message(self) -> str:
        noun = "invoice" if self.success_count == 1 else "invoices"
        return f"Imported {self.success_count} {noun}, {self.error_count} failed"


def build_upsert_payload(raw: Any, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Normalize one upstream record into the CRM upsert body."""
    invoice = normalize_invoice(raw)
    missing = [name for name in constants.IMPORT_REQUIRED_FIELDS if not getattr(invoice, name)]
    if missing:
        raise InvalidRecordError(missing)
    # generated fallback ids are display keys only and never reach the API
    has_source_id = isinstance(raw, dict) and first_defined(raw, constants.ID_KEYS, to_text) is not None
    payload = to_payload(invoice, include_id=has_source_id)
    if user_id:
        payload["user_id"] = user_id
    return payload


class BulkImporter:
    def __init__(
        self,
        transport: CrudTransport,
        fetch: BatchFetcher = fetch_batch,
        concurrency: int = 1,
        timeout: float = 30.0,
    ):
        self.transport = transport
        self.fetch = fetch
        self.concurrency = max(1, int(concurrency))
        self.timeout = timeout

    def import_record(self, index: int, raw: Any, user_id: Optional[str]) -> RecordResult:
        invoice_no = first_defined(raw, constants.INVOICE_NO_KEYS, to_text, "") if isinstance(raw, dict) else ""
        try:
            payload = build_upsert_payload(raw, user_id)
        except InvalidRecordError as exc:
            return RecordResult(index=index, ok=False, invoice_no=invoice_no, error=str(exc))
        try:
            response = self.transport.upsert(payload)
        except Exception as exc:
            return RecordResult(index=index, ok=False, invoice_no=invoice_no, error=str(exc) or exc.__class__.__name__)
        if response.error is not None:
            return RecordResult(index=index, ok=False, invoice_no=invoice_no, error=response.error)
        return RecordResult(index=index, ok=True, invoice_no=invoice_no)

    def import_records(self, records: List[Any], user_id: Optional[str] = None) -> List[RecordResult]:
        jobs = list(enumerate(records))
        if self.concurrency == 1 or len(jobs) <= 1:
            return [self.import_record(idx, raw, user_id) for idx, raw in jobs]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            return list(pool.map(lambda job: self.import_record(job[0], job[1], user_id), jobs))

    def run(self, source_url: str, user_id: Optional[str] = None) -> ImportSummary:
        """Fetch, upsert every record, then refresh from the service of record.

        Only a failed batch fetch raises (:class:`~invconsole.errors.BatchFetchError`).
        """
        payload = self.fetch(source_url, timeout=self.timeout)
        records = batch_records(payload)
        log.info("Fetched %d record(s) from %s", len(records), source_url)

        results = self.import_records(records, user_id)
        failures = [r for r in results if not r.ok]
        for failure in failures:
            log.warning(
                "import failed for record %d (%s): %s",
                failure.index,
                failure.invoice_no or "no invoice number",
                failure.error,
            )
        summary = ImportSummary(
            success_count=len(results) - len(failures),
            error_count=len(failures),
            failures=failures,
        )

        refreshed = self.transport.get_all()
        if refreshed.error is not None:
            log.warning("refresh after import failed: %s", refreshed.error)
            summary.refresh_error = refreshed.error
        else:
            summary.invoices = normalize_invoices(refreshed.data)
        log.info(summary.message)
        return summary
