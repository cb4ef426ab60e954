from __future__ import annotations

import argparse
import json
import logging
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional

from invconsole.adapters.http import HttpTransport, fetch_batch
from invconsole.adapters.memory import MemoryTransport
from invconsole.adapters.storage import JsonFileStorage
from invconsole.config import ConsoleConfig
from invconsole.domain.filters import InvoiceFilter, available_years
from invconsole.domain.money import format_amount, format_count
from invconsole.domain.normalize import batch_records
from invconsole.errors import ConsoleError
from invconsole.usecases.bulk_import import BulkImporter
from invconsole.usecases.draft import DraftStore
from invconsole.usecases.export import EXPORTERS
from invconsole.usecases.invoices import InvoiceConsole
from invconsole.usecases.notices import NoticeBoard


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    filters = argparse.ArgumentParser(add_help=False)
    filters.add_argument("--month", default="all", help="1-12 or 'all'")
    filters.add_argument("--year", default="all", help="e.g. 2025 or 'all'")
    filters.add_argument("--type", dest="kind", default="all", choices=["all", "gst", "po"])

    source = argparse.ArgumentParser(add_help=False)
    source.add_argument("--input", help="read invoices from a JSON file instead of the CRM API")
    source.add_argument("--api-base-url", help="override INVCONSOLE_API_BASE_URL")

    ap = argparse.ArgumentParser(description="Invoice console: export, print, import and stats")
    ap.add_argument("--debug", action="store_true", help="verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    exp = sub.add_parser("export", parents=[filters, source], help="write CSV / print / PDF exports")
    exp.add_argument(
        "--format", dest="formats", action="append", choices=list(EXPORTERS), help="repeatable; default general"
    )
    exp.add_argument("--out", default="./out_invoices", help="output directory")
    exp.add_argument("--open", action="store_true", help="open the print document in a browser")

    imp = sub.add_parser("import", parents=[source], help="pull an upstream batch and upsert it")
    imp.add_argument("--source", required=True, help="upstream batch URL")
    imp.add_argument("--user-id", help="owner id stamped on every upserted invoice")
    imp.add_argument("--concurrency", type=int, help="override INVCONSOLE_IMPORT_CONCURRENCY")

    one = sub.add_parser("invoice", parents=[source], help="write the printable document for one invoice")
    one.add_argument("--invoice-no", required=True, help="invoice number or id")
    one.add_argument("--out", default="./out_invoices", help="output directory")
    one.add_argument("--pdf", action="store_true", help="write PDF instead of HTML (needs PyMuPDF)")
    one.add_argument("--open", action="store_true", help="open the HTML document in a browser")

    sub.add_parser("stats", parents=[filters, source], help="print totals for the filtered view")

    draft = sub.add_parser("draft", help="inspect or clear the saved invoice draft")
    draft.add_argument("--clear", action="store_true", help="discard the saved draft")
    return ap.parse_args(argv)


def load_input(path: Path) -> List[dict]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return [r for r in batch_records(payload) if isinstance(r, dict)]


def build_console(args: argparse.Namespace, config: ConsoleConfig) -> InvoiceConsole:
    if getattr(args, "input", None):
        invoices_api = MemoryTransport(load_input(Path(args.input)))
        products_api = MemoryTransport()
    else:
        base_url = getattr(args, "api_base_url", None) or config.api_base_url
        invoices_api = HttpTransport(base_url, "invoices", token=config.api_token, timeout=config.timeout)
        products_api = HttpTransport(base_url, "products", token=config.api_token, timeout=config.timeout)
    concurrency = getattr(args, "concurrency", None) or config.import_concurrency
    importer = BulkImporter(invoices_api, fetch=fetch_batch, concurrency=concurrency, timeout=config.timeout)
    draft = DraftStore(JsonFileStorage(config.draft_path))
    return InvoiceConsole(invoices_api, products_api, draft, NoticeBoard(), importer)


def cmd_export(args: argparse.Namespace, console: InvoiceConsole, flt: InvoiceFilter) -> int:
    if not console.refresh() and not console.invoices:
        return 1
    out_dir = Path(args.out)
    status = 0
    for kind in args.formats or ["general"]:
        try:
            path = console.export(kind, flt, out_dir)
        except ConsoleError as e:
            print(f"[WARN] {kind} export failed: {e}")
            status = 1
            continue
        if path is None:
            print(f"[WARN] {kind}: nothing to export")
            continue
        print(f"[OK] {kind}: {path}")
        if args.open and kind == "print":
            webbrowser.open(path.resolve().as_uri())
    print(f"[DONE] output dir: {out_dir.resolve()}")
    return status


def cmd_invoice(args: argparse.Namespace, console: InvoiceConsole) -> int:
    if not console.refresh() and not console.invoices:
        return 1
    try:
        path = console.export_invoice(args.invoice_no, Path(args.out), pdf=args.pdf)
    except ConsoleError as e:
        print(f"[WARN] invoice export failed: {e}")
        return 1
    if path is None:
        print(f"[WARN] {console.notices.last.message}")
        return 1
    print(f"[OK] invoice: {path}")
    if args.open and not args.pdf:
        webbrowser.open(path.resolve().as_uri())
    return 0


def cmd_import(args: argparse.Namespace, console: InvoiceConsole) -> int:
    summary = console.bulk_import(args.source, args.user_id)
    if summary is None:
        print(f"[WARN] batch fetch failed: {console.notices.last.message}")
        return 1
    for failure in summary.failures:
        print(f"[WARN] record {failure.index} ({failure.invoice_no or '-'}): {failure.error}")
    print(f"[OK] {summary.message}")
    if summary.refresh_error:
        print(f"[WARN] refresh failed: {summary.refresh_error}")
    print(f"[DONE] invoices on record: {len(console.invoices)}")
    return 0


def cmd_stats(console: InvoiceConsole, flt: InvoiceFilter) -> int:
    if not console.refresh() and not console.invoices:
        return 1
    subset, stats = console.view(flt)
    years = ", ".join(str(y) for y in available_years(console.invoices)) or "-"
    print(f"[INFO] years on record: {years}")
    print(f"[OK] invoices: {format_count(stats.count)}")
    print(f"[OK] total value: {format_amount(stats.total_value)}")
    print(f"[OK] average sale: {format_amount(stats.average_sale)}")
    for status, count in stats.by_status.items():
        print(f"[OK] {status}: {format_count(count)}")
    print(f"[DONE] {len(subset)} of {len(console.invoices)} invoice(s) matched")
    return 0


def cmd_draft(args: argparse.Namespace, config: ConsoleConfig) -> int:
    store = DraftStore(JsonFileStorage(config.draft_path))
    restored = store.load()
    if args.clear:
        store.clear()
        print(f"[OK] draft cleared: {config.draft_path}")
        return 0
    if not restored:
        print("[INFO] no saved draft")
        return 0
    form = store.form
    label = f"editing {store.invoice_id}" if store.is_editing_invoice else "new invoice"
    print(f"[OK] draft ({label}): {form['invoice_no'] or '-'} for {form['customer_name'] or '-'}")
    print(f"[OK] lines: {len(store.editor.products)}, total {format_amount(store.editor.total)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format="%(message)s")

    try:
        config = ConsoleConfig.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.command == "draft":
        return cmd_draft(args, config)

    flt = None
    if args.command in ("export", "stats"):
        try:
            flt = InvoiceFilter(month=args.month, year=args.year, kind=args.kind)
        except ValueError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

    console = build_console(args, config)
    if args.command == "export":
        return cmd_export(args, console, flt)
    if args.command == "import":
        return cmd_import(args, console)
    if args.command == "invoice":
        return cmd_invoice(args, console)
    return cmd_stats(console, flt)


if __name__ == "__main__":
    raise SystemExit(main())
