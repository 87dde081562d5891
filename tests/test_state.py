import pytest

from spendlite.core.models import UNCATEGORISED, Transaction
from spendlite.core.rule_matcher import Rule
from spendlite.core.state import (
    AppState,
    ClearCategoryFilter,
    ClearMonthFilter,
    FilterState,
    GoToPage,
    LoadTransactions,
    ScrollPage,
    SetCategoryFilter,
    SetMonthFilter,
    SetRuleText,
    ToggleTransactions,
    UpsertRule,
    dispatch,
    initial_state,
    visible_transactions,
)
from spendlite.exceptions import RuleError


def month_of(count, date, description="COLES"):
    return [Transaction(date, -1.0, f"{description} {i}") for i in range(count)]


@pytest.fixture
def loaded():
    txns = month_of(25, "3 March 2024") + month_of(5, "1 April 2024", "SHELL")
    state = AppState(rule_text="COLES => GROCERIES\nSHELL => PETROL")
    return dispatch(state, LoadTransactions(txns))


def test_load_classifies_with_current_rules(loaded):
    assert len(loaded.transactions) == 30
    assert loaded.rules == [Rule("coles", "GROCERIES"), Rule("shell", "PETROL")]
    assert loaded.transactions[0].category == "GROCERIES"
    assert loaded.transactions[-1].category == "PETROL"


def test_load_replaces_transactions_and_drops_stale_month(loaded):
    state = dispatch(loaded, SetMonthFilter("2024-04"))
    state = dispatch(state, LoadTransactions(month_of(2, "3 March 2024")))
    assert len(state.transactions) == 2
    assert state.filters.month_filter == ""


def test_set_rule_text_reclassifies_and_resets_page(loaded):
    state = dispatch(loaded, GoToPage(3))
    assert state.filters.current_page == 3

    state = dispatch(state, SetRuleText("SHELL => FUEL"))
    assert state.filters.current_page == 1
    assert state.transactions[0].category == UNCATEGORISED
    assert state.transactions[-1].category == "FUEL"


def test_upsert_rule_updates_text_and_categories(loaded):
    state = dispatch(loaded, UpsertRule("coles 1", "special"))
    assert state.rule_text.endswith("COLES 1 => SPECIAL")
    # COLES still matches first, the new rule is appended after it
    assert state.transactions[1].category == "GROCERIES"

    state = dispatch(state, UpsertRule("coles", "food"))
    assert state.rule_text.split("\n")[0] == "COLES => FOOD"
    assert state.transactions[1].category == "FOOD"


def test_upsert_rule_rejects_empty_category(loaded):
    with pytest.raises(RuleError):
        dispatch(loaded, UpsertRule("COLES", " "))


def test_month_filter(loaded):
    state = dispatch(loaded, GoToPage(3))
    state = dispatch(state, SetMonthFilter("2024-04"))
    assert state.filters.month_filter == "2024-04"
    assert state.filters.current_page == 1
    assert len(visible_transactions(state)) == 5

    state = dispatch(state, SetMonthFilter("1999-01"))
    assert state.filters.month_filter == ""

    state = dispatch(dispatch(state, SetMonthFilter("2024-03")), ClearMonthFilter())
    assert state.filters.month_filter == ""
    assert len(visible_transactions(state)) == 30


def test_category_filter_is_uppercased(loaded):
    state = dispatch(loaded, SetCategoryFilter(" petrol "))
    assert state.filters.category_filter == "PETROL"
    assert len(visible_transactions(state)) == 5

    state = dispatch(state, ClearCategoryFilter())
    assert state.filters.category_filter == ""


def test_month_and_category_filters_combine(loaded):
    state = dispatch(loaded, SetMonthFilter("2024-04"))
    state = dispatch(state, SetCategoryFilter("GROCERIES"))
    assert visible_transactions(state) == []


def test_go_to_page_is_clamped(loaded):
    assert dispatch(loaded, GoToPage(9)).filters.current_page == 3
    assert dispatch(loaded, GoToPage(0)).filters.current_page == 1


def test_filter_change_clamps_page(loaded):
    state = dispatch(loaded, GoToPage(3))
    state = dispatch(state, SetCategoryFilter("PETROL"))
    assert state.filters.current_page == 1


def test_scroll_page(loaded):
    state = dispatch(loaded, ScrollPage(1))
    assert state.filters.current_page == 2
    state = dispatch(state, ScrollPage(1))
    state = dispatch(state, ScrollPage(1))
    assert state.filters.current_page == 3
    state = dispatch(state, ScrollPage(-1))
    assert state.filters.current_page == 2


def test_scroll_ignored_with_one_page(loaded):
    state = dispatch(loaded, SetCategoryFilter("PETROL"))
    assert dispatch(state, ScrollPage(1)).filters.current_page == 1


def test_toggle_transactions(loaded):
    assert loaded.transactions_collapsed is True
    state = dispatch(loaded, ToggleTransactions())
    assert state.transactions_collapsed is False
    assert dispatch(state, ToggleTransactions()).transactions_collapsed is True


def test_dispatch_returns_new_state(loaded):
    state = dispatch(loaded, SetCategoryFilter("PETROL"))
    assert state is not loaded
    assert loaded.filters.category_filter == ""


def test_unknown_action():
    with pytest.raises(TypeError):
        dispatch(AppState(), "reload")


def test_initial_state_validates_saved_filters():
    txns = month_of(3, "3 March 2024")
    state = initial_state(
        rule_text="COLES => GROCERIES",
        transactions=txns,
        filters=FilterState(month_filter="2020-01", category_filter="groceries", current_page=7),
    )
    assert state.filters == FilterState(month_filter="", category_filter="GROCERIES", current_page=1)
    assert all(t.category == "GROCERIES" for t in state.transactions)
