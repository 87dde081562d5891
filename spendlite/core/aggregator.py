"""
Category totals and debit/credit summaries
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .models import Transaction
from .parsing import for_filename, to_title_case

AMOUNT_WIDTH = 12
PERCENT_WIDTH = 6
MIN_CATEGORY_WIDTH = 8


@dataclass(frozen=True)
class CategoryTotalsRow:
    category: str
    total: float
    percent: float


def category_totals(transactions: Iterable[Transaction]) -> Tuple[List[CategoryTotalsRow], float]:
    """
    Sum signed amounts per category

    Returns:
        (rows sorted by total descending, grand total). Ties keep the order
        in which categories first appear.
    """
    by_category: Dict[str, float] = {}
    for txn in transactions:
        key = txn.category_key
        by_category[key] = by_category.get(key, 0.0) + txn.amount

    ordered = sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    grand = sum(total for _, total in ordered)

    rows = [
        CategoryTotalsRow(
            category=category,
            total=total,
            percent=(total / grand * 100) if grand else 0.0,
        )
        for category, total in ordered
    ]
    return rows, grand


def debit_credit_net(transactions: Iterable[Transaction]) -> Tuple[float, float, float]:
    """
    Split amounts into debit and credit

    Only strictly positive amounts are debits; everything else (zero
    included) counts toward credit by absolute value.

    Returns:
        (debit, credit, net) where net = debit - credit
    """
    debit = 0.0
    credit = 0.0
    for txn in transactions:
        if txn.amount > 0:
            debit += txn.amount
        else:
            credit += abs(txn.amount)
    return debit, credit, debit - credit


def format_totals_report(rows: List[CategoryTotalsRow], grand_total: float, label: str) -> str:
    """
    Render category totals as a fixed-width text report

    Args:
        rows: Output of category_totals()
        grand_total: Grand total from category_totals()
        label: Month label shown in the header (e.g. "March 2024")
    """
    header = f"SpendLite Category Totals ({label})"
    names = [to_title_case(row.category) for row in rows]
    cat_width = max([MIN_CATEGORY_WIDTH, len('Category')] + [len(name) for name in names])

    lines = [
        header,
        '=' * len(header),
        'Category'.ljust(cat_width) + ' ' + 'Amount'.rjust(AMOUNT_WIDTH) + ' ' + '%'.rjust(PERCENT_WIDTH),
    ]
    for name, row in zip(names, rows):
        lines.append(
            name.ljust(cat_width) + ' '
            + f"{row.total:.2f}".rjust(AMOUNT_WIDTH) + ' '
            + f"{row.percent:.1f}%".rjust(PERCENT_WIDTH)
        )
    lines.append('')
    lines.append('TOTAL'.ljust(cat_width) + ' ' + f"{grand_total:.2f}".rjust(AMOUNT_WIDTH) + ' ' + '100%'.rjust(PERCENT_WIDTH))
    return '\n'.join(lines)


def totals_report_filename(label: str) -> str:
    return f"category_totals_{for_filename(label)}.txt"
