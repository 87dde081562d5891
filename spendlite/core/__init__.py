"""
SpendLite core engine

Parsing, rule matching, aggregation and the view model. Nothing in here
touches the screen or the disk except csv_parser.load_statement_file.
"""

# Expose main functions for easy imports
from .aggregator import category_totals, debit_credit_net
from .keyword_suggestor import suggest_keyword_and_category
from .models import UNCATEGORISED, Transaction
from .parsing import parse_amount, parse_date_smart, year_month_key
from .rule_matcher import Rule, RuleMatcher, categorise, parse_rules, upsert_rule
from .state import AppState, FilterState, dispatch
from .view_model import build_view_model, paginate

__all__ = [
    'category_totals',
    'debit_credit_net',
    'suggest_keyword_and_category',
    'UNCATEGORISED',
    'Transaction',
    'parse_amount',
    'parse_date_smart',
    'year_month_key',
    'Rule',
    'RuleMatcher',
    'categorise',
    'parse_rules',
    'upsert_rule',
    'AppState',
    'FilterState',
    'dispatch',
    'build_view_model',
    'paginate',
]
