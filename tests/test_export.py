import csv
import io
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "apps" / "workers-py" / "src"
sys.path.insert(0, str(SRC_DIR))

from invconsole.domain.models import Invoice, Product  # noqa: E402
from invconsole.errors import ConsoleError, NothingToExportError  # noqa: E402
from invconsole.usecases import export  # noqa: E402


def make_invoices():
    return [
        Invoice(
            id="1",
            invoice_no="INV-001",
            date="2025-11-03T10:00:00.000Z",
            customer_name='Ravi "RK" Kumar',
            customer_phone="9848012345",
            customer_address="1 MG Road, Hyderabad",
            gst=True,
            gst_no="36ABCDE1234F1Z5",
            gst_name="Aqua Traders",
            products=[Product(name="Filter", quantity=2, price=1500)],
            payment_type="upi",
            total_amount=12000,
            paid_status="paid",
        ),
        Invoice(id="2", invoice_no="INV-002", date="2025-11-05", customer_name="<script>x</script>", total_amount=99.5),
    ]


def test_general_csv_quotes_every_field():
    text = export.render_general_csv(make_invoices())
    lines = text.split("\n")
    assert lines[0] == ",".join(f'"{h}"' for h in export.constants.GENERAL_CSV_HEADER)
    assert lines[1].startswith('"INV-001","2025-11-03","Ravi ""RK"" Kumar","9848012345"')
    assert lines[1].endswith('"10169","1830","12000","paid"')
    assert text.endswith("\n")
    assert "\r" not in text


def test_general_csv_round_trips_through_csv_reader():
    rows = list(csv.reader(io.StringIO(export.render_general_csv(make_invoices()))))
    assert len(rows) == 3
    assert all(len(row) == 16 for row in rows)
    assert rows[1][2] == 'Ravi "RK" Kumar'
    assert rows[1][6:9] == ["Yes", "No", "No"]
    assert rows[2][14] == "99.50"


def test_sales_csv_columns():
    rows = list(csv.reader(io.StringIO(export.render_sales_csv(make_invoices()))))
    assert rows[0] == export.constants.SALES_CSV_HEADER
    assert rows[1] == [
        "INV-001",
        "2025-11-03",
        'Ravi "RK" Kumar',
        "Yes",
        "36ABCDE1234F1Z5",
        "Aqua Traders",
        "10169",
        "1830",
        "12000",
    ]
    assert rows[2][3:6] == ["No", "", ""]


def test_renderers_are_deterministic():
    invoices = make_invoices()
    assert export.render_general_csv(invoices) == export.render_general_csv(invoices)
    assert export.render_sales_csv(invoices) == export.render_sales_csv(invoices)
    assert export.render_print_html(invoices) == export.render_print_html(invoices)


@pytest.mark.parametrize(
    "renderer",
    [export.render_general_csv, export.render_sales_csv, export.render_print_html],
)
def test_empty_input_raises(renderer):
    with pytest.raises(NothingToExportError) as excinfo:
        renderer([])
    assert str(excinfo.value) == "No invoices to export"


def test_print_html_single_table_with_totals():
    doc = export.render_print_html(make_invoices(), title="Invoices Nov 2025")
    assert doc.count("<table") == 1
    assert "<tfoot>" in doc
    assert "Total (2 invoices)" in doc
    assert "₹12,000" in doc
    assert "03 Nov 2025" in doc
    assert "&lt;script&gt;x&lt;/script&gt;" in doc
    assert "<script>x</script>" not in doc
    assert "window.print()" in doc
    assert "window.print()" not in export.render_print_html(make_invoices(), autoprint=False)


def test_write_helpers_use_fixed_filenames(tmp_path):
    invoices = make_invoices()
    general = export.write_general_csv(invoices, tmp_path)
    sales = export.write_sales_csv(invoices, tmp_path)
    page = export.write_print_html(invoices, tmp_path)
    assert general.name == "invoices.csv"
    assert sales.name == "sales_invoices.csv"
    assert page.name == "invoices.html"
    assert general.read_bytes() == export.render_general_csv(invoices).encode("utf-8")


def test_empty_export_writes_nothing(tmp_path):
    with pytest.raises(NothingToExportError):
        export.write_general_csv([], tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_pdf_requires_pymupdf(monkeypatch, tmp_path):
    monkeypatch.setattr(export, "HAVE_PYMUPDF", False)
    with pytest.raises(ConsoleError):
        export.write_pdf(make_invoices(), tmp_path)
    assert not (tmp_path / "invoices.pdf").exists()


def test_pdf_is_rendered_with_pymupdf(tmp_path):
    pytest.importorskip("fitz")
    path = export.write_pdf(make_invoices(), tmp_path)
    assert path.name == "invoices.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def single_invoice(**overrides):
    fields = dict(
        id="665f1c2ab3d4e5f6a7b8c9d0",
        invoice_no="INV-2025/11:07",
        date="2025-11-03",
        customer_name="Kiran <K>",
        customer_phone="9000000001",
        customer_address="Vizag",
        products=[
            Product(name="Filter", quantity=2, price=1500, serial_no="SN-9"),
            Product(name="Pump", quantity=1, price=9000),
        ],
        payment_type="bank_transfer",
        total_amount=12000,
        paid_status="partial",
    )
    fields.update(overrides)
    return Invoice(**fields)


def test_invoice_document_splits_each_line_and_the_total():
    doc = export.render_invoice_html(single_invoice())
    assert doc.count("<table") == 1
    assert doc.count("<tr>") == 4
    # unit price 1500 -> base 1271, gst 228; line total 3000
    assert "₹1,271" in doc
    assert "₹228" in doc
    assert "₹3,000" in doc
    assert "SN-9" in doc
    # grand total 12000 -> base 10169, gst 1830
    assert "Grand Total" in doc
    assert "₹10,169" in doc
    assert "₹1,830" in doc
    assert "₹12,000" in doc


def test_invoice_document_header_payment_and_reference():
    doc = export.render_invoice_html(single_invoice())
    assert "Issued on 03 Nov 2025" in doc
    assert "PARTIAL" in doc
    assert "Bank Transfer" in doc
    assert "A7B8C9D0" in doc
    assert "Email" in doc and "N/A" in doc
    assert "Kiran &lt;K&gt;" in doc
    assert "Kiran <K>" not in doc
    assert "window.print()" in doc
    assert "window.print()" not in export.render_invoice_html(single_invoice(), autoprint=False)


def test_invoice_document_gst_and_delivery_blocks_are_optional():
    plain = export.render_invoice_html(single_invoice())
    assert "GST Details" not in plain
    assert "Delivered By" not in plain
    doc = export.render_invoice_html(
        single_invoice(gst=True, gst_no="36ABCDE1234F1Z5", gst_name="Aqua Traders", delivered_by="Ramesh")
    )
    assert "GST Details" in doc
    assert "36ABCDE1234F1Z5" in doc
    assert "Delivered By" in doc
    assert "Ramesh" in doc


def test_invoice_document_filename_is_sanitized(tmp_path):
    path = export.write_invoice_document(single_invoice(), tmp_path)
    assert path == tmp_path / "invoice_INV-2025_11_07.html"
    assert path.read_text(encoding="utf-8") == export.render_invoice_html(single_invoice())
    unnumbered = export.write_invoice_document(single_invoice(invoice_no=""), tmp_path)
    assert unnumbered.name == "invoice_665f1c2ab3d4e5f6a7b8c9d0.html"
    assert export.sanitize_filename('a\\b/c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"
    assert export.sanitize_filename("   ") == "invoice"


def test_invoice_pdf_requires_pymupdf(monkeypatch, tmp_path):
    monkeypatch.setattr(export, "HAVE_PYMUPDF", False)
    with pytest.raises(ConsoleError):
        export.write_invoice_document(single_invoice(), tmp_path, pdf=True)
    assert list(tmp_path.iterdir()) == []


def test_invoice_pdf_is_rendered_with_pymupdf(tmp_path):
    pytest.importorskip("fitz")
    path = export.write_invoice_document(single_invoice(), tmp_path, pdf=True)
    assert path.name == "invoice_INV-2025_11_07.pdf"
    assert path.read_bytes().startswith(b"%PDF")
