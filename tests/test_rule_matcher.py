import pytest

from spendlite.core.models import UNCATEGORISED, Transaction
from spendlite.core.rule_matcher import (
    SAMPLE_RULES,
    Rule,
    RuleMatcher,
    categorise,
    export_rules_text,
    format_rules,
    match_category,
    parse_rules,
    upsert_rule,
)
from spendlite.exceptions import RuleError


def test_parse_rules_normalises_case_and_skips_noise():
    text = """
# Rules format: KEYWORD => CATEGORY
  Coles =>  groceries
SHELL=>Petrol

no separator here
 => MISSING KEYWORD
EMPTY CATEGORY =>
UBER => transport => extra
"""
    assert parse_rules(text) == [
        Rule("coles", "GROCERIES"),
        Rule("shell", "PETROL"),
        Rule("uber", "TRANSPORT"),
    ]


def test_parse_rules_handles_crlf_and_empty_input():
    assert parse_rules("A => X\r\nB => Y\r\n") == [Rule("a", "X"), Rule("b", "Y")]
    assert parse_rules("") == []
    assert parse_rules(None) == []


def test_sample_rules_parse():
    rules = parse_rules(SAMPLE_RULES)
    assert rules[0] == Rule("officeworks", "OFFICE SUPPLIES")
    assert len(rules) == 7


def test_first_match_wins_not_longest():
    rules = [Rule("a", "X"), Rule("ab", "Y")]
    assert match_category("crab cakes", rules) == "X"


def test_match_is_case_insensitive_substring():
    rules = parse_rules("coles => GROCERIES")
    assert match_category("Coffee COLES Sydney", rules) == "GROCERIES"
    assert match_category("WOOLWORTHS", rules) == UNCATEGORISED
    assert match_category(None, rules) == UNCATEGORISED


def test_categorise_is_idempotent():
    rules = parse_rules(SAMPLE_RULES)
    txns = [
        Transaction("3 March 2024", -45.0, "COLES 1234"),
        Transaction("3 March 2024", -20.0, "BP CONNECT"),
        Transaction("3 March 2024", -5.0, "MYSTERY"),
    ]
    first = [t.category for t in categorise(txns, rules)]
    second = [t.category for t in categorise(txns, rules)]
    assert first == second == ["GROCERIES", "PETROL", UNCATEGORISED]


def test_categorise_overwrites_previous_category():
    txn = Transaction("3 March 2024", -45.0, "COLES 1234", category="OLD")
    categorise([txn], [])
    assert txn.category == UNCATEGORISED


def test_upsert_rewrites_existing_line_in_place():
    text = "# header\ncoles => food\nSHELL => PETROL\n"
    updated = upsert_rule(text, "Coles", "groceries")
    assert updated == "# header\nCOLES => GROCERIES\nSHELL => PETROL\n"


def test_upsert_appends_new_rule_keeping_trailing_newline():
    assert upsert_rule("COLES => GROCERIES\n", "uber", "transport") == "COLES => GROCERIES\nUBER => TRANSPORT\n"
    assert upsert_rule("COLES => GROCERIES", "uber", "transport") == "COLES => GROCERIES\nUBER => TRANSPORT"
    assert upsert_rule("", "uber", "transport") == "UBER => TRANSPORT"


def test_upsert_ignores_commented_rules():
    updated = upsert_rule("# COLES => OLD\n", "coles", "groceries")
    assert updated == "# COLES => OLD\nCOLES => GROCERIES\n"


@pytest.mark.parametrize("keyword, category", [("", "X"), ("  ", "X"), ("COLES", ""), (None, "X")])
def test_upsert_requires_keyword_and_category(keyword, category):
    with pytest.raises(RuleError):
        upsert_rule("A => B", keyword, category)


def test_export_normalises_line_endings():
    assert export_rules_text("A => X\r\nB => Y\rC => Z\n") == "A => X\nB => Y\nC => Z\n"
    assert export_rules_text(None) == ""


def test_export_then_parse_keeps_rule_order():
    text = "# mine\r\nCOLES => GROCERIES\r\nSHELL => PETROL\r\nBP => PETROL"
    assert parse_rules(export_rules_text(text)) == parse_rules(text)


def test_format_rules_round_trips():
    rules = parse_rules(SAMPLE_RULES)
    assert parse_rules(format_rules(rules)) == rules


def test_rule_matcher_tracks_stats(capsys):
    matcher = RuleMatcher.from_text("COLES => GROCERIES\nSHELL => PETROL")
    txns = [
        Transaction("3 March 2024", -45.0, "COLES 1"),
        Transaction("3 March 2024", -45.0, "COLES 2"),
        Transaction("3 March 2024", -45.0, "SHELL"),
        Transaction("3 March 2024", -45.0, "OTHER"),
    ]
    matcher.categorize_batch(txns)

    summary = matcher.summary()
    assert summary["total"] == 4
    assert summary["matches"] == 3
    assert summary["no_match"] == 1
    assert summary["match_rate"] == pytest.approx(0.75)
    assert summary["by_category"] == {"GROCERIES": 2, "PETROL": 1}
    assert txns[3].category == UNCATEGORISED

    matcher.print_stats()
    out = capsys.readouterr().out
    assert "Matched: 3 (75.0%)" in out
    assert "GROCERIES: 2" in out


def test_rule_matcher_without_transactions(capsys):
    matcher = RuleMatcher()
    matcher.load_rules("A => B")
    assert matcher.rules == [Rule("a", "B")]
    assert matcher.summary()["match_rate"] == 0.0
    matcher.print_stats()
    assert "No transactions processed yet" in capsys.readouterr().out
