"""
View Model Builder

Applies the month filter, category filter and pagination to the in-memory
transaction list, and projects the whole application state into the data a
presentation layer needs to draw one screen.
"""
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..config import DEFAULT_PAGE_SIZE
from .aggregator import CategoryTotalsRow, category_totals, debit_credit_net
from .models import Transaction
from .parsing import ALL_MONTHS_LABEL, format_month_label, friendly_month_or_all

if TYPE_CHECKING:
    from .state import AppState

PAGE_WINDOW_SIZE = 5


def month_filtered_transactions(transactions: List[Transaction], month_key: Optional[str]) -> List[Transaction]:
    """All transactions when month_key is empty, else those dated in that month (undated ones excluded)"""
    if not month_key:
        return list(transactions)
    return [txn for txn in transactions if txn.month_key == month_key]


def category_filtered_transactions(transactions: List[Transaction],
                                   category_filter: Optional[str]) -> List[Transaction]:
    if not category_filter:
        return list(transactions)
    wanted = category_filter.upper()
    return [txn for txn in transactions if txn.category_key == wanted]


def total_pages_for(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return max(1, min(int(page), total_pages))


@dataclass
class Page:
    items: List[Transaction]
    total_pages: int
    page: int


def paginate(transactions: Sequence[Transaction], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """
    Slice out one page

    The requested page is clamped into [1, total_pages] first, so asking
    for page 9 of 5 returns page 5 and page 0 returns page 1.
    """
    total_pages = total_pages_for(len(transactions), page_size)
    page = clamp_page(page, total_pages)
    start = (page - 1) * page_size
    return Page(items=list(transactions[start:start + page_size]), total_pages=total_pages, page=page)


def page_window(current: int, total_pages: int, size: int = PAGE_WINDOW_SIZE) -> List[int]:
    """
    Page numbers to show around the current page

    Centred on current (±2 for the default size) and shifted at the edges
    so that up to `size` numbers are always shown.
    """
    start = max(1, current - size // 2)
    end = min(total_pages, start + size - 1)
    start = max(1, min(start, end - size + 1))
    return list(range(start, end + 1))


@dataclass(frozen=True)
class PagerControl:
    label: str
    page: int
    disabled: bool = False
    active: bool = False


def pager_controls(current: int, total_pages: int) -> List[PagerControl]:
    """First / Prev / numbered window / Next / Last"""
    pages = max(1, total_pages)
    controls = [
        PagerControl('First', 1, disabled=current == 1),
        PagerControl('Prev', max(1, current - 1), disabled=current == 1),
    ]
    controls.extend(
        PagerControl(str(p), p, active=p == current)
        for p in page_window(current, pages)
    )
    controls.extend([
        PagerControl('Next', min(pages, current + 1), disabled=current == pages),
        PagerControl('Last', pages, disabled=current == pages),
    ])
    return controls


def scroll_page(current: int, total_pages: int, delta: float) -> int:
    """
    Page after one scroll-wheel tick

    Positive delta moves forward, negative moves back. Nothing happens
    when there is only one page or the move would leave the range.
    """
    if total_pages <= 1:
        return current
    if delta > 0 and current < total_pages:
        return current + 1
    if delta < 0 and current > 1:
        return current - 1
    return current


def available_months(transactions: List[Transaction]) -> List[str]:
    """Sorted year-month keys of all transactions with a resolvable date"""
    return sorted({txn.month_key for txn in transactions if txn.month_key})


def month_options(transactions: List[Transaction],
                  selected: Optional[str]) -> Tuple[List[Tuple[str, str]], str]:
    """
    Options for the month dropdown

    Returns:
        ([("", "All months"), ("2024-03", "March 2024"), ...], selected)
        where selected falls back to "" if it is no longer available
    """
    months = available_months(transactions)
    options = [('', ALL_MONTHS_LABEL)] + [(key, format_month_label(key)) for key in months]
    effective = selected if selected and selected in months else ''
    return options, effective


@dataclass
class TransactionRow:
    """One visible row, with its index in the full transaction list"""
    index: int
    date: str
    amount: float
    category: str
    description: str


@dataclass
class ViewModel:
    month_options: List[Tuple[str, str]]
    month_filter: str
    month_label: str
    category_filter: str
    totals_rows: List[CategoryTotalsRow]
    grand_total: float
    # Month + category filtered set (the "Showing N transactions" line)
    shown_count: int
    shown_debit: float
    shown_credit: float
    shown_net: float
    # Month filtered set only (the totals bar)
    month_count: int
    month_debit: float
    month_credit: float
    month_net: float
    rows: List[TransactionRow] = field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    pager: List[PagerControl] = field(default_factory=list)
    transactions_collapsed: bool = True

    @property
    def summary_line(self) -> str:
        cat = f' + category "{self.category_filter}"' if self.category_filter else ''
        return (f"Showing {self.shown_count} transactions for {self.month_label}{cat} · "
                f"Debit: ${self.shown_debit:.2f} · Credit: ${self.shown_credit:.2f} · "
                f"Net: ${self.shown_net:.2f}")

    @property
    def totals_bar(self) -> str:
        return (f"Rows: {self.month_count} · Debit: ${self.month_debit:.2f} · "
                f"Credit: ${self.month_credit:.2f} · Net: ${self.month_net:.2f} ({self.month_label})")


def build_view_model(state: 'AppState', page_size: int = DEFAULT_PAGE_SIZE) -> ViewModel:
    """
    Project application state into everything one screen shows

    Category totals cover the month-filtered set so every category stays
    clickable; the transaction table and summary line also apply the
    category filter.
    """
    filters = state.filters
    options, month_filter = month_options(state.transactions, filters.month_filter)

    by_month = month_filtered_transactions(state.transactions, month_filter)
    shown = category_filtered_transactions(by_month, filters.category_filter)

    rows, grand = category_totals(by_month)
    shown_debit, shown_credit, shown_net = debit_credit_net(shown)
    month_debit, month_credit, month_net = debit_credit_net(by_month)

    page = paginate(shown, filters.current_page, page_size)
    # Identity lookup: equal-looking transactions are still distinct rows
    positions = {id(txn): i for i, txn in enumerate(state.transactions)}

    return ViewModel(
        month_options=options,
        month_filter=month_filter,
        month_label=friendly_month_or_all(month_filter),
        category_filter=filters.category_filter,
        totals_rows=rows,
        grand_total=grand,
        shown_count=len(shown),
        shown_debit=shown_debit,
        shown_credit=shown_credit,
        shown_net=shown_net,
        month_count=len(by_month),
        month_debit=month_debit,
        month_credit=month_credit,
        month_net=month_net,
        rows=[
            TransactionRow(
                index=positions[id(txn)],
                date=txn.date,
                amount=txn.amount,
                category=txn.category_key,
                description=txn.description,
            )
            for txn in page.items
        ],
        page=page.page,
        total_pages=page.total_pages,
        pager=pager_controls(page.page, page.total_pages),
        transactions_collapsed=state.transactions_collapsed,
    )
