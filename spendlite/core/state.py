"""
Application state and the action reducer

Every user action goes through ``dispatch(state, action)``, which runs the
classify -> filter -> paginate pipeline to completion and returns the next
state. Rendering is a separate projection (see view_model.build_view_model).
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional

from ..config import DEFAULT_PAGE_SIZE
from .models import Transaction
from .rule_matcher import Rule, categorise, parse_rules, upsert_rule
from .view_model import (
    available_months,
    category_filtered_transactions,
    clamp_page,
    month_filtered_transactions,
    scroll_page,
    total_pages_for,
)


@dataclass
class FilterState:
    month_filter: str = ''        # 'YYYY-MM' or '' for all months
    category_filter: str = ''     # uppercase category or '' for none
    current_page: int = 1


@dataclass
class AppState:
    transactions: List[Transaction] = field(default_factory=list)
    rule_text: str = ''
    rules: List[Rule] = field(default_factory=list)
    filters: FilterState = field(default_factory=FilterState)
    transactions_collapsed: bool = True


# --- Actions

@dataclass(frozen=True)
class LoadTransactions:
    transactions: List[Transaction]


@dataclass(frozen=True)
class SetRuleText:
    rule_text: str


@dataclass(frozen=True)
class UpsertRule:
    keyword: str
    category: str


@dataclass(frozen=True)
class SetMonthFilter:
    month: str


@dataclass(frozen=True)
class ClearMonthFilter:
    pass


@dataclass(frozen=True)
class SetCategoryFilter:
    category: str


@dataclass(frozen=True)
class ClearCategoryFilter:
    pass


@dataclass(frozen=True)
class GoToPage:
    page: int


@dataclass(frozen=True)
class ScrollPage:
    delta: float


@dataclass(frozen=True)
class ToggleTransactions:
    pass


def visible_transactions(state: AppState) -> List[Transaction]:
    """Transactions after the month and category filters"""
    by_month = month_filtered_transactions(state.transactions, state.filters.month_filter)
    return category_filtered_transactions(by_month, state.filters.category_filter)


def _valid_month(transactions: List[Transaction], month: Optional[str]) -> str:
    month = (month or '').strip()
    return month if month and month in available_months(transactions) else ''


def _apply_rules(state: AppState, rule_text: str) -> AppState:
    rules = parse_rules(rule_text)
    categorise(state.transactions, rules)
    return replace(state, rule_text=rule_text, rules=rules,
                   filters=replace(state.filters, current_page=1))


def _clamped(state: AppState, page_size: int) -> AppState:
    total = total_pages_for(len(visible_transactions(state)), page_size)
    page = clamp_page(state.filters.current_page, total)
    if page == state.filters.current_page:
        return state
    return replace(state, filters=replace(state.filters, current_page=page))


def initial_state(rule_text: str = '',
                  transactions: Optional[List[Transaction]] = None,
                  filters: Optional[FilterState] = None,
                  transactions_collapsed: bool = True,
                  page_size: int = DEFAULT_PAGE_SIZE) -> AppState:
    """Build a classified starting state (used when restoring a session)"""
    transactions = list(transactions or [])
    filters = filters or FilterState()
    state = AppState(
        transactions=transactions,
        filters=replace(filters, month_filter=_valid_month(transactions, filters.month_filter),
                        category_filter=(filters.category_filter or '').strip().upper()),
        transactions_collapsed=transactions_collapsed,
    )
    state = _apply_rules(state, rule_text)
    return _clamped(state, page_size)


def dispatch(state: AppState, action, page_size: int = DEFAULT_PAGE_SIZE) -> AppState:
    """
    Apply one action and return the next state

    Args:
        state: Current state (transaction categories are updated in place)
        action: One of the action dataclasses above
        page_size: Rows per page, for clamping the current page

    Raises:
        RuleError: for UpsertRule with an empty keyword or category
        TypeError: for an unknown action
    """
    if isinstance(action, LoadTransactions):
        transactions = list(action.transactions)
        state = replace(state, transactions=transactions,
                        filters=replace(state.filters,
                                        month_filter=_valid_month(transactions, state.filters.month_filter)))
        state = _apply_rules(state, state.rule_text)

    elif isinstance(action, SetRuleText):
        state = _apply_rules(state, action.rule_text or '')

    elif isinstance(action, UpsertRule):
        state = _apply_rules(state, upsert_rule(state.rule_text, action.keyword, action.category))

    elif isinstance(action, SetMonthFilter):
        state = replace(state, filters=replace(state.filters,
                                               month_filter=_valid_month(state.transactions, action.month),
                                               current_page=1))

    elif isinstance(action, ClearMonthFilter):
        state = replace(state, filters=replace(state.filters, month_filter='', current_page=1))

    elif isinstance(action, SetCategoryFilter):
        state = replace(state, filters=replace(state.filters,
                                               category_filter=(action.category or '').strip().upper(),
                                               current_page=1))

    elif isinstance(action, ClearCategoryFilter):
        state = replace(state, filters=replace(state.filters, category_filter='', current_page=1))

    elif isinstance(action, GoToPage):
        state = replace(state, filters=replace(state.filters, current_page=action.page))

    elif isinstance(action, ScrollPage):
        total = total_pages_for(len(visible_transactions(state)), page_size)
        current = clamp_page(state.filters.current_page, total)
        state = replace(state, filters=replace(state.filters,
                                               current_page=scroll_page(current, total, action.delta)))

    elif isinstance(action, ToggleTransactions):
        state = replace(state, transactions_collapsed=not state.transactions_collapsed)

    else:
        raise TypeError(f"Unknown action: {action!r}")

    return _clamped(state, page_size)
