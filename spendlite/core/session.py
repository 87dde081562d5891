"""
Session

Owns the current AppState, runs actions through the reducer and saves the
result. The CLIs and the Streamlit dashboard only talk to this class.
"""
from datetime import date
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config import Settings, get_settings
from ..exceptions import RuleError
from ..logging_setup import get_logger
from ..utils.storage import StateRepository
from .aggregator import category_totals, format_totals_report, totals_report_filename
from .csv_parser import load_statement_file, parse_statement_csv
from .keyword_suggestor import suggest_keyword_and_category
from .llm_categorizer import LLMCategorizer
from .models import UNCATEGORISED
from .parsing import friendly_month_or_all, year_month_key
from .rule_matcher import SAMPLE_RULES, export_rules_text
from .state import (
    AppState,
    FilterState,
    LoadTransactions,
    SetRuleText,
    UpsertRule,
    dispatch,
    initial_state,
)
from .view_model import ViewModel, build_view_model, month_filtered_transactions

logger = get_logger(__name__)


def default_rule_text(rules_file: Optional[Path]) -> str:
    """Rules from the configured rules file, else the built-in sample"""
    if rules_file and Path(rules_file).is_file():
        try:
            return Path(rules_file).read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", rules_file, e)
    return SAMPLE_RULES


class Session:
    """
    One user's working session
    """

    def __init__(self,
                 repository: StateRepository,
                 settings: Optional[Settings] = None,
                 state: Optional[AppState] = None,
                 llm_client=None):
        """
        Args:
            repository: Where state is saved (best-effort)
            settings: Runtime settings (default: from environment)
            state: Starting state (default: empty)
            llm_client: Optional Anthropic client override for suggestions
        """
        self.repository = repository
        self.settings = settings or get_settings()
        self.state = state or AppState()
        self.llm_client = llm_client

    @classmethod
    def restore(cls, repository: StateRepository, settings: Optional[Settings] = None, **kwargs) -> 'Session':
        """
        Rebuild a session from saved state

        Rules come from storage when non-empty, else from the rules file,
        else the built-in sample rules.
        """
        settings = settings or get_settings()
        persisted = repository.load()

        rule_text = persisted.rule_text
        if not rule_text or not rule_text.strip():
            rule_text = default_rule_text(settings.rules_file)

        state = initial_state(
            rule_text=rule_text,
            transactions=persisted.transactions,
            filters=FilterState(
                month_filter=persisted.month_filter,
                category_filter=persisted.category_filter,
            ),
            transactions_collapsed=persisted.transactions_collapsed,
            page_size=settings.page_size,
        )
        logger.info("Restored session with %d transactions and %d rules",
                    len(state.transactions), len(state.rules))
        return cls(repository, settings=settings, state=state, **kwargs)

    # --- Pipeline

    def dispatch(self, action) -> AppState:
        previous = self.state
        self.state = dispatch(previous, action, self.settings.page_size)
        self._save(previous, self.state, action)
        return self.state

    def _save(self, previous: AppState, current: AppState, action):
        if current.rule_text != previous.rule_text:
            self.repository.save_rules(current.rule_text)
        if current.filters.category_filter != previous.filters.category_filter:
            self.repository.save_category_filter(current.filters.category_filter)
        if current.filters.month_filter != previous.filters.month_filter:
            self.repository.save_month_filter(current.filters.month_filter)
        if current.transactions_collapsed != previous.transactions_collapsed:
            self.repository.save_collapsed(current.transactions_collapsed)
        # Categories change whenever rules are re-applied
        if isinstance(action, (LoadTransactions, SetRuleText, UpsertRule)):
            self.repository.save_transactions(current.transactions)

    def view(self) -> ViewModel:
        return build_view_model(self.state, self.settings.page_size)

    # --- Import / export

    def load_csv_text(self, csv_text: str) -> int:
        """
        Replace the transactions with those from a statement export

        Raises:
            CsvIngestionError: if the CSV cannot be read; state is unchanged
        """
        transactions = parse_statement_csv(csv_text)
        self.dispatch(LoadTransactions(transactions))
        return len(transactions)

    def load_csv_file(self, csv_path: Union[str, Path]) -> int:
        transactions = load_statement_file(csv_path)
        self.dispatch(LoadTransactions(transactions))
        return len(transactions)

    def import_rules_text(self, rule_text: str) -> AppState:
        return self.dispatch(SetRuleText(rule_text))

    def import_rules_bytes(self, data: bytes) -> AppState:
        """Import an uploaded rules file; raises RuleError if it is not UTF-8"""
        try:
            text = data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise RuleError(f"Rules file is not UTF-8 text: {e}") from e
        return self.import_rules_text(text)

    def import_rules_file(self, rules_path: Union[str, Path]) -> AppState:
        try:
            text = Path(rules_path).read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise RuleError(f"Could not read rules file {rules_path}: {e}") from e
        return self.import_rules_text(text)

    def export_rules(self) -> str:
        return export_rules_text(self.state.rule_text)

    def totals_label(self) -> str:
        """Month label for the totals export: active month, else first transaction's month, else today"""
        month = self.state.filters.month_filter
        if not month:
            # Unfiltered exports still cover every month; only the label and
            # filename name the first transaction's month
            txns = month_filtered_transactions(self.state.transactions, month)
            if txns and txns[0].month_key:
                month = txns[0].month_key
            else:
                month = year_month_key(date.today())
        return friendly_month_or_all(month)

    def export_totals(self) -> Tuple[str, str]:
        """
        Category totals report for the current month filter

        Returns:
            (suggested filename, report text)
        """
        txns = month_filtered_transactions(self.state.transactions, self.state.filters.month_filter)
        rows, grand = category_totals(txns)
        label = self.totals_label()
        return totals_report_filename(label), format_totals_report(rows, grand, label)

    # --- Rule creation

    def suggest_rule(self, index: int) -> Optional[Tuple[str, str]]:
        """
        Suggested (keyword, category) for the transaction at index

        Returns:
            None if the index is out of range
        """
        if not 0 <= index < len(self.state.transactions):
            return None
        txn = self.state.transactions[index]
        keyword, category = suggest_keyword_and_category(txn)

        if category == UNCATEGORISED and self.settings.enable_llm:
            llm = LLMCategorizer(
                [rule.category for rule in self.state.rules],
                api_key=self.settings.anthropic_api_key,
                model=self.settings.llm_model,
                client=self.llm_client,
            )
            category = llm.suggest_category(txn.description, txn.amount) or category

        return keyword, category

    def create_rule(self, keyword: str, category: str) -> AppState:
        """Add or update a rule and re-apply all rules"""
        return self.dispatch(UpsertRule(keyword, category))
