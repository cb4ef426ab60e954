"""Export generators over the currently filtered invoice collection.

All renderers are pure functions of their input list: same invoices in, same
bytes out. An empty list raises :class:`NothingToExportError` before anything
touches the filesystem. :func:`render_invoice_html` is the printable document
for a single invoice.
"""

from __future__ import annotations

import csv
import html
import io
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from ..domain import constants
from ..domain.dates import date_part, format_date
from ..domain.models import Invoice, Product
from ..domain.money import base_price, format_amount, format_number, gst_value, line_total
from ..errors import ConsoleError, NothingToExportError

try:  # pragma: no cover - optional dependency
    import fitz  # type: ignore

    HAVE_PYMUPDF = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_PYMUPDF = False


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _require(invoices: Sequence[Invoice]) -> None:
    if not invoices:
        raise NothingToExportError(constants.NO_INVOICES_TO_EXPORT)


def _csv_text(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buf.getvalue()


def general_row(inv: Invoice) -> List[str]:
    return [
        inv.invoice_no,
        date_part(inv.date),
        inv.customer_name,
        inv.customer_phone,
        inv.customer_email,
        inv.customer_address,
        yes_no(inv.gst),
        yes_no(inv.po),
        yes_no(inv.quotation),
        inv.payment_type,
        date_part(inv.delivery_date) if inv.delivery_date else "",
        inv.delivered_by or "",
        str(base_price(inv.total_amount)),
        str(gst_value(inv.total_amount)),
        format_number(inv.total_amount),
        inv.paid_status,
    ]


def sales_row(inv: Invoice) -> List[str]:
    return [
        inv.invoice_no,
        date_part(inv.date),
        inv.customer_name,
        yes_no(inv.gst),
        inv.gst_no or "",
        inv.gst_name or "",
        str(base_price(inv.total_amount)),
        str(gst_value(inv.total_amount)),
        format_number(inv.total_amount),
    ]


def render_general_csv(invoices: Sequence[Invoice]) -> str:
    _require(invoices)
    return _csv_text(constants.GENERAL_CSV_HEADER, (general_row(inv) for inv in invoices))


def render_sales_csv(invoices: Sequence[Invoice]) -> str:
    _require(invoices)
    return _csv_text(constants.SALES_CSV_HEADER, (sales_row(inv) for inv in invoices))


# ---------- print document ----------
_PAGE_STYLE = "font-family: Arial, Helvetica, sans-serif; margin: 24px; color: #0f172a;"
_TABLE_STYLE = "width: 100%; border-collapse: collapse; font-size: 12px;"
_TH_STYLE = "border: 1px solid #cbd5e1; background: #f1f5f9; padding: 6px; text-align: left;"
_TD_STYLE = "border: 1px solid #cbd5e1; padding: 6px;"
_NUM_STYLE = _TD_STYLE + " text-align: right;"
_FOOT_STYLE = _NUM_STYLE + " font-weight: bold;"


def _cell(value: str, style: str = _TD_STYLE, tag: str = "td", extra: str = "") -> str:
    return f'<{tag}{extra} style="{style}">{html.escape(value)}</{tag}>'


def print_row(inv: Invoice) -> str:
    cells = [
        _cell(inv.invoice_no),
        _cell(format_date(inv.date)),
        _cell(inv.customer_name),
        _cell(inv.customer_phone),
        _cell(yes_no(inv.gst)),
        _cell(format_amount(base_price(inv.total_amount)), _NUM_STYLE),
        _cell(format_amount(gst_value(inv.total_amount)), _NUM_STYLE),
        _cell(format_amount(inv.total_amount), _NUM_STYLE),
        _cell(inv.paid_status.upper()),
    ]
    return "<tr>" + "".join(cells) + "</tr>"


def render_print_html(invoices: Sequence[Invoice], title: str = "Invoices", autoprint: bool = True) -> str:
    """Self-contained printable report: inline styles and a single table."""
    _require(invoices)
    head = "".join(_cell(h, _TH_STYLE, "th") for h in constants.PRINT_HEADER)
    body = "\n".join(print_row(inv) for inv in invoices)
    base_sum = sum(base_price(inv.total_amount) for inv in invoices)
    gst_sum = sum(gst_value(inv.total_amount) for inv in invoices)
    grand_total = sum((inv.total_amount for inv in invoices), 0)
    count_label = f"Total ({len(invoices)} invoice{'s' if len(invoices) != 1 else ''})"
    foot = (
        "<tr>"
        + _cell(count_label, _FOOT_STYLE, extra=' colspan="5"')
        + _cell(format_amount(base_sum), _FOOT_STYLE)
        + _cell(format_amount(gst_sum), _FOOT_STYLE)
        + _cell(format_amount(grand_total), _FOOT_STYLE)
        + _cell("", _FOOT_STYLE)
        + "</tr>"
    )
    script = "<script>window.onload = function () { window.print(); };</script>\n" if autoprint else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        "</head>\n"
        f'<body style="{_PAGE_STYLE}">\n'
        f'<h1 style="font-size: 20px; margin: 0 0 12px;">{html.escape(title)}</h1>\n'
        f'<table style="{_TABLE_STYLE}">\n'
        f"<thead><tr>{head}</tr></thead>\n"
        f"<tbody>\n{body}\n</tbody>\n"
        f"<tfoot>{foot}</tfoot>\n"
        "</table>\n"
        f"{script}"
        "</body>\n"
        "</html>\n"
    )


# ---------- single-invoice document ----------
_LABEL_STYLE = "font-size: 10px; text-transform: uppercase; letter-spacing: 0.08em; color: #64748b; margin: 0;"
_VALUE_STYLE = "font-size: 13px; font-weight: bold; margin: 2px 0 10px;"
_SECTION_STYLE = "border-top: 1px solid #94a3b8; padding-top: 12px; margin-top: 16px;"
_BADGE_STYLE = "display: inline-block; padding: 2px 10px; border-radius: 10px; font-weight: bold;"
_BADGE_COLORS = {
    "paid": "background: #d1fae5; color: #065f46;",
    "partial": "background: #fef3c7; color: #92400e;",
    "unpaid": "background: #ffe4e6; color: #9f1239;",
}


def _field(label: str, value: str) -> str:
    return (
        f'<p style="{_LABEL_STYLE}">{html.escape(label)}</p>'
        f'<p style="{_VALUE_STYLE}">{html.escape(value)}</p>'
    )


def _section(title: str, fields: Sequence[Tuple[str, str]]) -> str:
    body = "".join(_field(label, value) for label, value in fields)
    return (
        f'<div style="{_SECTION_STYLE}">'
        f'<h2 style="font-size: 15px; margin: 0 0 8px;">{html.escape(title)}</h2>'
        f"{body}</div>\n"
    )


def invoice_line_row(index: int, line: Product) -> str:
    cells = [
        _cell(str(index)),
        _cell(line.name),
        _cell(line.serial_no or ""),
        _cell(str(line.quantity), _NUM_STYLE),
        _cell(format_amount(line.price), _NUM_STYLE),
        _cell(format_amount(base_price(line.price)), _NUM_STYLE),
        _cell(format_amount(gst_value(line.price)), _NUM_STYLE),
        _cell(format_amount(line_total(line)), _NUM_STYLE),
    ]
    return "<tr>" + "".join(cells) + "</tr>"


def invoice_reference(inv: Invoice) -> str:
    return inv.id[-8:].upper()


def render_invoice_html(inv: Invoice, autoprint: bool = True) -> str:
    """Printable document for one invoice.

    Base and GST per line are the split of the unit price; the footer splits
    the invoice total. Both go through :func:`base_price` and :func:`gst_value`.
    """
    title = f"Invoice {inv.invoice_no or invoice_reference(inv)}"
    badge = _BADGE_COLORS.get(inv.paid_status, "background: #f1f5f9; color: #0f172a;")
    parts = [
        f'<h1 style="font-size: 24px; margin: 0;">{html.escape(inv.invoice_no)}</h1>\n',
        f'<p style="margin: 2px 0 12px; color: #334155;">Issued on {html.escape(format_date(inv.date))}</p>\n',
        f'<p style="margin: 0;">{html.escape(format_date(inv.date))} '
        f'<span style="{_BADGE_STYLE} {badge}">{html.escape(inv.paid_status.upper())}</span></p>\n',
        _section(
            "Customer Information",
            [
                ("Name", inv.customer_name),
                ("Phone", inv.customer_phone),
                ("Email", inv.customer_email or "N/A"),
                ("Address", inv.customer_address),
            ],
        ),
    ]
    if inv.gst:
        parts.append(
            _section(
                "GST Details",
                [
                    ("GST Name", inv.gst_name or ""),
                    ("GST Number", inv.gst_no or ""),
                    ("GST Phone", inv.gst_phone or ""),
                    ("GST Email", inv.gst_email or ""),
                    ("GST Address", inv.gst_address or ""),
                ],
            )
        )
    if inv.delivered_by or inv.delivery_date:
        parts.append(
            _section(
                "Delivery",
                [
                    ("Delivered By", inv.delivered_by or ""),
                    ("Delivery Date", format_date(inv.delivery_date) if inv.delivery_date else ""),
                ],
            )
        )

    head = "".join(_cell(h, _TH_STYLE, "th") for h in constants.INVOICE_LINE_HEADER)
    rows = "\n".join(invoice_line_row(idx, line) for idx, line in enumerate(inv.products, start=1))
    foot = (
        "<tr>"
        + _cell("Grand Total", _FOOT_STYLE, extra=' colspan="5"')
        + _cell(format_amount(base_price(inv.total_amount)), _FOOT_STYLE)
        + _cell(format_amount(gst_value(inv.total_amount)), _FOOT_STYLE)
        + _cell(format_amount(inv.total_amount), _FOOT_STYLE)
        + "</tr>"
    )
    parts.append(
        f'<div style="{_SECTION_STYLE}">'
        '<h2 style="font-size: 15px; margin: 0 0 8px;">Products</h2>\n'
        f'<table style="{_TABLE_STYLE}">\n'
        f"<thead><tr>{head}</tr></thead>\n"
        f"<tbody>\n{rows}\n</tbody>\n"
        f"<tfoot>{foot}</tfoot>\n"
        "</table></div>\n"
    )
    parts.append(
        _section(
            "Payment",
            [
                ("Payment Method", inv.payment_type.replace("_", " ").title() or "N/A"),
                ("Reference", invoice_reference(inv)),
            ],
        )
    )
    script = "<script>window.onload = function () { window.print(); };</script>\n" if autoprint else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        "</head>\n"
        f'<body style="{_PAGE_STYLE}">\n'
        + "".join(parts)
        + f"{script}"
        "</body>\n"
        "</html>\n"
    )


def render_pdf(document: str, dest: Path) -> Path:
    """Lay the print document out on A4 pages with PyMuPDF."""
    if not HAVE_PYMUPDF:
        raise ConsoleError("PDF rendering needs PyMuPDF: pip install pymupdf")
    dest.parent.mkdir(parents=True, exist_ok=True)
    story = fitz.Story(html=document)  # type: ignore[attr-defined]
    writer = fitz.DocumentWriter(str(dest))  # type: ignore[attr-defined]
    mediabox = fitz.paper_rect("a4")  # type: ignore[attr-defined]
    where = mediabox + (36, 36, -36, -36)
    more = True
    while more:
        device = writer.begin_page(mediabox)
        more, _ = story.place(where)
        story.draw(device)
        writer.end_page()
    writer.close()
    return dest


# ---------- files ----------
def _write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    return path


def write_general_csv(invoices: Sequence[Invoice], out_dir: Path) -> Path:
    return _write_text(out_dir / constants.GENERAL_CSV_FILENAME, render_general_csv(invoices))


def write_sales_csv(invoices: Sequence[Invoice], out_dir: Path) -> Path:
    return _write_text(out_dir / constants.SALES_CSV_FILENAME, render_sales_csv(invoices))


def write_print_html(invoices: Sequence[Invoice], out_dir: Path, title: str = "Invoices") -> Path:
    return _write_text(out_dir / constants.PRINT_HTML_FILENAME, render_print_html(invoices, title))


def write_pdf(invoices: Sequence[Invoice], out_dir: Path, title: str = "Invoices") -> Path:
    document = render_print_html(invoices, title, autoprint=False)
    return render_pdf(document, out_dir / constants.PRINT_PDF_FILENAME)


def sanitize_filename(name: str, default: str = "invoice") -> str:
    name = re.sub(r'[\\/:*?"<>|]+', "_", (name or "").strip())
    return name or default


def write_invoice_document(inv: Invoice, out_dir: Path, pdf: bool = False) -> Path:
    """Write ``invoice_<no>.html`` (or ``.pdf``) for a single invoice."""
    stem = constants.INVOICE_DOCUMENT_PREFIX + sanitize_filename(inv.invoice_no or inv.id)
    if pdf:
        return render_pdf(render_invoice_html(inv, autoprint=False), out_dir / f"{stem}.pdf")
    return _write_text(out_dir / f"{stem}.html", render_invoice_html(inv))


EXPORTERS: Dict[str, Tuple[str, Callable[..., Path]]] = {
    "general": (constants.GENERAL_CSV_FILENAME, write_general_csv),
    "sales": (constants.SALES_CSV_FILENAME, write_sales_csv),
    "print": (constants.PRINT_HTML_FILENAME, write_print_html),
    "pdf": (constants.PRINT_PDF_FILENAME, write_pdf),
}
