import pytest

from spendlite.core.aggregator import (
    CategoryTotalsRow,
    category_totals,
    debit_credit_net,
    format_totals_report,
    totals_report_filename,
)
from spendlite.core.models import Transaction


def txn(amount, category="UNCATEGORISED", description="X"):
    return Transaction("3 March 2024", amount, description, category=category)


def test_single_negative_grocery_row_keeps_its_sign():
    rows, grand = category_totals([txn(-45.00, "GROCERIES")])

    assert rows == [CategoryTotalsRow("GROCERIES", -45.00, 100.0)]
    assert grand == -45.00
    assert debit_credit_net([txn(-45.00, "GROCERIES")]) == (0.0, 45.0, -45.0)


def test_rows_sorted_descending_with_stable_ties():
    rows, grand = category_totals([
        txn(10, "B"),
        txn(30, "C"),
        txn(10, "A"),
        txn(5, "B"),
        txn(-5, "A"),
    ])
    assert [(r.category, r.total) for r in rows] == [("C", 30), ("B", 15), ("A", 5)]
    assert grand == 50

    tied, _ = category_totals([txn(10, "Z"), txn(10, "M"), txn(10, "A")])
    assert [r.category for r in tied] == ["Z", "M", "A"]


def test_category_keys_are_uppercased_and_default_to_uncategorised():
    rows, _ = category_totals([txn(1, "groceries"), txn(2, "GROCERIES"), txn(4, "")])
    assert {r.category: r.total for r in rows} == {"UNCATEGORISED": 4, "GROCERIES": 3}


def test_grand_total_matches_sum_of_amounts():
    amounts = [0.1, 0.2, -0.3, 1234.56, -999.99, 0.07, 42.0]
    categories = ["A", "B", "A", "C", "B", "D", "C"]
    txns = [txn(a, c) for a, c in zip(amounts, categories)]

    rows, grand = category_totals(txns)
    assert abs(grand - sum(amounts)) < 1e-9
    assert abs(sum(r.total for r in rows) - grand) < 1e-9


def test_percentages_share_of_grand_total():
    rows, _ = category_totals([txn(75, "A"), txn(25, "B")])
    assert [r.percent for r in rows] == [pytest.approx(75.0), pytest.approx(25.0)]


def test_zero_grand_total_gives_zero_percent():
    rows, grand = category_totals([txn(10, "A"), txn(-10, "B")])
    assert grand == 0
    assert all(r.percent == 0.0 for r in rows)


def test_empty_input():
    assert category_totals([]) == ([], 0)
    assert debit_credit_net([]) == (0.0, 0.0, 0.0)


def test_zero_amount_counts_as_credit():
    debit, credit, net = debit_credit_net([txn(0.0), txn(20.0), txn(-5.0)])
    assert (debit, credit, net) == (20.0, 5.0, 15.0)


def test_format_totals_report_layout():
    rows, grand = category_totals([txn(-45.0, "GROCERIES"), txn(-15.0, "OFFICE_SUPPLIES")])
    report = format_totals_report(rows, grand, "March 2024")
    lines = report.split("\n")

    assert lines[0] == "SpendLite Category Totals (March 2024)"
    assert lines[1] == "=" * len(lines[0])
    assert lines[2] == "Category       " + " " + "Amount".rjust(12) + " " + "%".rjust(6)
    assert lines[3] == "Office Supplies" + " " + "-15.00".rjust(12) + " " + "25.0%".rjust(6)
    assert lines[4] == "Groceries      " + " " + "-45.00".rjust(12) + " " + "75.0%".rjust(6)
    assert lines[5] == ""
    assert lines[6] == "TOTAL          " + " " + "-60.00".rjust(12) + " " + "100%".rjust(6)


def test_format_totals_report_min_width():
    report = format_totals_report([], 0.0, "All months")
    assert report.split("\n")[2].startswith("Category ")
    assert report.endswith("TOTAL   " + " " + "0.00".rjust(12) + " " + "100%".rjust(6))


def test_totals_report_filename():
    assert totals_report_filename("March 2024") == "category_totals_March_2024.txt"
