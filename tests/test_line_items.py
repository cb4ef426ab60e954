import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "apps" / "workers-py" / "src"
sys.path.insert(0, str(SRC_DIR))

from invconsole.domain.models import CatalogProduct, Product  # noqa: E402
from invconsole.usecases import line_items  # noqa: E402
from invconsole.usecases.line_items import LineItemEditor  # noqa: E402


def filled_editor(**kwargs):
    editor = LineItemEditor(**kwargs)
    for name, qty, price in (("Filter", 2, 1500), ("Pump", 1, 8000), ("Pipe", 5, 200)):
        editor.set_staging(name=name, quantity=qty, price=price)
        assert editor.commit() is True
    return editor


def test_committed_lines_drive_the_total():
    editor = filled_editor()
    assert editor.total == 12000
    assert editor.state == line_items.IDLE
    assert editor.products[0] == Product(name="Filter", quantity=2, price=1500)


def test_edit_then_commit_overwrites_only_that_line():
    editor = filled_editor()
    before = list(editor.products)
    editor.edit(1)
    assert editor.state == line_items.EDITING
    assert editor.staging.name == "Pump"
    editor.set_staging(price=9000)
    assert editor.commit() is True
    assert editor.products[0] == before[0]
    assert editor.products[2] == before[2]
    assert editor.products[1] == Product(name="Pump", quantity=1, price=9000)
    assert len(editor.products) == 3
    assert editor.state == line_items.IDLE
    assert editor.total == 13000


def test_cancel_edit_leaves_lines_untouched():
    editor = filled_editor()
    before = list(editor.products)
    editor.edit(2)
    editor.set_staging(quantity=50)
    editor.cancel_edit()
    assert editor.products == before
    assert editor.state == line_items.IDLE
    assert editor.editing_index is None


def test_invalid_staging_line_is_not_committed():
    editor = LineItemEditor()
    editor.set_staging(name="Mystery", price=0)
    assert editor.commit() is False
    assert editor.products == []
    assert editor.state == line_items.COMPOSING
    editor.set_staging(name="  ", price=10)
    assert editor.commit() is False


def test_removing_an_earlier_line_keeps_edit_target():
    editor = filled_editor()
    editor.edit(2)
    editor.remove(0)
    assert editor.editing_index == 1
    assert editor.staging.name == "Pipe"
    assert [p.name for p in editor.products] == ["Pump", "Pipe"]


def test_removing_the_edited_line_resets_staging():
    editor = filled_editor()
    editor.edit(1)
    removed = editor.remove(1)
    assert removed.name == "Pump"
    assert editor.state == line_items.IDLE


def test_bad_indexes_raise():
    editor = filled_editor()
    with pytest.raises(IndexError):
        editor.edit(3)
    with pytest.raises(IndexError):
        editor.remove(-1)


def test_select_autofills_price_from_catalog():
    catalog = [CatalogProduct(id="p1", name="RO Filter", price=1200)]
    editor = LineItemEditor(catalog=catalog)
    match = editor.select("ro filter")
    assert match is catalog[0]
    assert editor.staging.name == "RO Filter"
    assert editor.staging.price == 1200
    assert editor.select("Unknown") is None
    assert editor.staging.price == 0


def test_every_mutation_notifies():
    calls = []
    editor = LineItemEditor(on_change=lambda: calls.append(1))
    editor.set_staging(name="Valve", price=50)
    editor.commit()
    editor.edit(0)
    editor.cancel_edit()
    editor.remove(0)
    assert len(calls) == 5


def test_serial_number_is_kept_on_commit():
    editor = LineItemEditor()
    editor.set_staging(name="Pump", price=8000, serial_no=" SN-42 ")
    editor.commit()
    assert editor.products[0].serial_no == "SN-42"
