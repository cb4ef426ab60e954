import math
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "apps" / "workers-py" / "src"
sys.path.insert(0, str(SRC_DIR))

from invconsole.domain import money  # noqa: E402
from invconsole.domain.models import Product  # noqa: E402


def sample_lines():
    return [
        Product(name="Filter", quantity=2, price=1500),
        Product(name="Pump", quantity=1, price=8000),
        Product(name="Pipe", quantity=5, price=200),
    ]


def test_three_line_invoice_totals_and_tax_split():
    total = money.compute_total(sample_lines())
    assert total == 12000
    assert money.base_price(total) == 10169
    assert money.gst_value(total) == 1830


def test_compute_total_is_order_independent():
    lines = sample_lines()
    assert money.compute_total(lines) == money.compute_total(list(reversed(lines)))
    assert money.compute_total([]) == 0


def test_tax_parts_never_exceed_total():
    totals = list(range(0, 50001, 37)) + list(range(400000, 2000001, 997))
    totals += [1, 118, 999, 12000, 478017, 478076, 478135, 1000000, 10**8, 99.99, 123456.78]
    for total in totals:
        base = money.base_price(total)
        gst = money.gst_value(total)
        assert isinstance(base, int) and isinstance(gst, int)
        assert base >= 0 and gst >= 0
        assert base + gst <= total


def test_large_totals_split_exactly():
    assert money.base_price(478017) == 405099
    assert money.gst_value(478017) == 72917
    assert money.base_price(1180000) == 1000000
    assert money.gst_value(1180000) == 180000


def test_tax_helpers_treat_non_finite_as_zero():
    assert money.base_price(float("nan")) == 0
    assert money.gst_value(float("inf")) == 0
    assert money.base_price(None) == 0


def test_format_amount_uses_indian_grouping():
    assert money.format_amount(0) == "₹0"
    assert money.format_amount(999) == "₹999"
    assert money.format_amount(100000) == "₹1,00,000"
    assert money.format_amount(1234567.6) == "₹12,34,568"
    assert money.format_amount(-2500) == "-₹2,500"


def test_format_amount_non_finite_and_junk():
    assert money.format_amount(float("nan")) == "₹0"
    assert money.format_amount("abc") == "₹0"
    assert money.format_amount(None) == "₹0"


def test_format_number_and_count():
    assert money.format_number(12000) == "12000"
    assert money.format_number(12000.0) == "12000"
    assert money.format_number(99.5) == "99.50"
    assert money.format_number(math.inf) == "0"
    assert money.format_count(3.0) == "3"
    assert money.format_count(None) == "0"
