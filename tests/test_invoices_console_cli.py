import json
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "apps" / "workers-py" / "src"
sys.path.insert(0, str(SRC_DIR))

from invconsole.adapters.memory import MemoryTransport  # noqa: E402
from invconsole.adapters.storage import JsonFileStorage  # noqa: E402
from invconsole.cli import invoices_console as cli  # noqa: E402
from invconsole.usecases import export  # noqa: E402
from invconsole.usecases.draft import DraftStore  # noqa: E402

INVOICES = {
    "data": [
        {
            "id": "a1",
            "invoice_no": "INV-001",
            "date": "2025-11-03",
            "customer_name": "Ravi",
            "gst": True,
            "products": [{"productName": "Pump", "productQuantity": 1, "productPrice": 12000}],
            "paid_status": "paid",
        },
        {"id": "a2", "invoice_no": "INV-002", "date": "2025-10-01", "customer_name": "Asha", "total_amount": 500},
    ]
}


@pytest.fixture(autouse=True)
def console_env(monkeypatch, tmp_path):
    for name in ("INVCONSOLE_API_BASE_URL", "INVCONSOLE_API_TOKEN", "INVCONSOLE_TIMEOUT", "INVCONSOLE_IMPORT_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("INVCONSOLE_DRAFT_PATH", str(tmp_path / "draft.json"))


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "invoices.json"
    path.write_text(json.dumps(INVOICES), encoding="utf-8")
    return path


def test_export_writes_requested_formats(tmp_path, input_file, capsys):
    out = tmp_path / "out"
    code = cli.main(["export", "--input", str(input_file), "--out", str(out), "--format", "general", "--format", "sales"])
    assert code == 0
    assert (out / "invoices.csv").exists()
    assert (out / "sales_invoices.csv").exists()
    printed = capsys.readouterr().out
    assert "[OK] general:" in printed
    assert "[OK] sales:" in printed
    assert "[DONE] output dir:" in printed


def test_export_with_no_matches_warns_and_writes_nothing(tmp_path, input_file, capsys):
    out = tmp_path / "out"
    code = cli.main(["export", "--input", str(input_file), "--out", str(out), "--year", "1999"])
    assert code == 0
    assert not (out / "invoices.csv").exists()
    assert "[WARN] general: nothing to export" in capsys.readouterr().out


def test_export_print_can_open_browser(tmp_path, input_file, monkeypatch):
    opened = []
    monkeypatch.setattr(cli.webbrowser, "open", lambda url: opened.append(url))
    out = tmp_path / "out"
    code = cli.main(["export", "--input", str(input_file), "--out", str(out), "--format", "print", "--open"])
    assert code == 0
    assert opened == [(out / "invoices.html").resolve().as_uri()]


def test_invoice_writes_single_document(tmp_path, input_file, monkeypatch, capsys):
    opened = []
    monkeypatch.setattr(cli.webbrowser, "open", lambda url: opened.append(url))
    out = tmp_path / "out"
    code = cli.main(["invoice", "--input", str(input_file), "--invoice-no", "INV-001", "--out", str(out), "--open"])
    assert code == 0
    doc = out / "invoice_INV-001.html"
    assert "Grand Total" in doc.read_text(encoding="utf-8")
    assert opened == [doc.resolve().as_uri()]
    assert "[OK] invoice:" in capsys.readouterr().out


def test_invoice_unknown_number_fails(tmp_path, input_file, capsys):
    code = cli.main(["invoice", "--input", str(input_file), "--invoice-no", "NOPE", "--out", str(tmp_path / "out")])
    assert code == 1
    assert "[WARN] Invoice not found: NOPE" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_invoice_pdf_without_pymupdf_fails(tmp_path, input_file, monkeypatch, capsys):
    monkeypatch.setattr(export, "HAVE_PYMUPDF", False)
    code = cli.main(["invoice", "--input", str(input_file), "--invoice-no", "a2", "--out", str(tmp_path), "--pdf"])
    assert code == 1
    assert "[WARN] invoice export failed: PDF rendering needs PyMuPDF" in capsys.readouterr().out


def test_stats_prints_filtered_totals(input_file, capsys):
    code = cli.main(["stats", "--input", str(input_file), "--type", "gst"])
    assert code == 0
    printed = capsys.readouterr().out
    assert "[INFO] years on record: 2025" in printed
    assert "[OK] invoices: 1" in printed
    assert "[OK] total value: ₹12,000" in printed
    assert "[DONE] 1 of 2 invoice(s) matched" in printed


def test_bad_filter_is_a_usage_error(input_file, capsys):
    assert cli.main(["stats", "--input", str(input_file), "--month", "13"]) == 2
    assert "ERROR:" in capsys.readouterr().err


def test_bad_environment_is_a_config_error(monkeypatch, input_file):
    monkeypatch.setenv("INVCONSOLE_TIMEOUT", "soon")
    assert cli.main(["stats", "--input", str(input_file)]) == 2


def test_import_upserts_through_api(monkeypatch, capsys):
    stores = {"invoices": MemoryTransport(), "products": MemoryTransport()}
    batch = [
        {"invoice_number": "UP-1", "customer_name": "A", "phone": "1"},
        {"invoice_number": "UP-2", "customer_name": "B"},
        {"invoice_number": "UP-3", "customer_name": "C", "mobile": "3"},
    ]
    monkeypatch.setattr(cli, "HttpTransport", lambda base_url, resource, **kwargs: stores[resource])
    monkeypatch.setattr(cli, "fetch_batch", lambda url, timeout=30.0: batch)
    code = cli.main(["import", "--source", "https://upstream.example/orders", "--concurrency", "2"])
    assert code == 0
    printed = capsys.readouterr().out
    assert "[WARN] record 1 (UP-2): missing required field(s): customer_phone" in printed
    assert "[OK] Imported 2 invoices, 1 failed" in printed
    assert "[DONE] invoices on record: 2" in printed
    assert len(stores["invoices"].records) == 2


def test_draft_show_and_clear(tmp_path, capsys):
    path = tmp_path / "draft.json"
    assert cli.main(["draft"]) == 0
    assert "[INFO] no saved draft" in capsys.readouterr().out

    store = DraftStore(JsonFileStorage(path))
    store.load()
    store.update(invoice_no="INV-5", customer_name="Meena")
    store.editor.set_staging(name="Pump", price=8000)
    store.editor.commit()

    assert cli.main(["draft"]) == 0
    printed = capsys.readouterr().out
    assert "[OK] draft (new invoice): INV-5 for Meena" in printed
    assert "[OK] lines: 1, total ₹8,000" in printed

    assert cli.main(["draft", "--clear"]) == 0
    assert JsonFileStorage(path).get_item("invoice_form_draft") is None
