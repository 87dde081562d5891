"""
Rule Matcher Engine

Rules are plain text, one per line:

    # comment
    COLES => GROCERIES
    SHELL => PETROL

Each transaction gets the category of the FIRST rule (in line order) whose
keyword appears anywhere in its description, case-insensitively.
"""
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..exceptions import RuleError
from ..logging_setup import get_logger
from .models import UNCATEGORISED, Transaction

logger = get_logger(__name__)

SEPARATOR_RE = re.compile(r'=>', re.IGNORECASE)
LINE_BREAK_RE = re.compile(r'\r?\n')

SAMPLE_RULES = """# Rules format: KEYWORD => CATEGORY
OFFICEWORKS => OFFICE SUPPLIES
COLES => GROCERIES
SHELL => PETROL
UBER => TRANSPORT
WOOLWORTHS => GROCERIES
BP => PETROL
BUNNINGS => HARDWARE
"""


@dataclass(frozen=True)
class Rule:
    """A keyword => category mapping (keyword lowercase, category uppercase)"""
    keyword: str
    category: str


def _split_rule_line(line: str) -> Optional[List[str]]:
    """Return the '=>'-separated parts of a rule line, or None for blanks and comments"""
    trimmed = line.strip()
    if not trimmed or trimmed.startswith('#'):
        return None
    parts = SEPARATOR_RE.split(trimmed)
    if len(parts) < 2:
        return None
    return parts


def parse_rules(rule_text: Optional[str]) -> List[Rule]:
    """
    Parse rule text into an ordered list of rules

    Blank lines, '#' comments and lines without a usable 'KEYWORD => CATEGORY'
    pair are dropped silently.
    """
    rules = []
    for line in LINE_BREAK_RE.split(str(rule_text or '')):
        parts = _split_rule_line(line)
        if parts is None:
            continue
        keyword = parts[0].strip().lower()
        category = parts[1].strip().upper()
        if keyword and category:
            rules.append(Rule(keyword=keyword, category=category))
    return rules


def match_category(description: Optional[str], rules: Iterable[Rule]) -> str:
    """Category of the first rule whose keyword occurs in the description"""
    desc = (description or '').lower()
    for rule in rules:
        if rule.keyword in desc:
            return rule.category
    return UNCATEGORISED


def categorise(transactions: List[Transaction], rules: List[Rule]) -> List[Transaction]:
    """
    Apply rules to every transaction, in place

    Returns:
        The same list, for chaining
    """
    for txn in transactions:
        txn.category = match_category(txn.description, rules)
    return transactions


def upsert_rule(rule_text: Optional[str], keyword: str, category: str) -> str:
    """
    Add or update a rule line

    If a rule with the same keyword (case-insensitive) exists, its line is
    rewritten in place so it keeps its priority. Otherwise the rule is
    appended at the end.

    Args:
        rule_text: Current rule text
        keyword: Keyword to match
        category: Category to assign

    Returns:
        The updated rule text

    Raises:
        RuleError: if keyword or category is empty
    """
    keyword = (keyword or '').strip().upper()
    category = (category or '').strip().upper()
    if not keyword or not category:
        raise RuleError("Both keyword and category are required")

    new_line = f"{keyword} => {category}"
    text = str(rule_text or '')
    lines = LINE_BREAK_RE.split(text) if text else []

    for i, line in enumerate(lines):
        parts = _split_rule_line(line)
        if parts is None:
            continue
        if parts[0].strip().upper() == keyword:
            lines[i] = new_line
            logger.info("Updated rule %s", new_line)
            return '\n'.join(lines)

    # Keep a trailing newline from the source as the last line
    if lines and lines[-1] == '':
        lines[-1] = new_line
        lines.append('')
    else:
        lines.append(new_line)
    logger.info("Added rule %s", new_line)
    return '\n'.join(lines)


def export_rules_text(rule_text: Optional[str]) -> str:
    """Normalise line endings to '\\n' for export"""
    return re.sub(r'\r\n?', '\n', str(rule_text or ''))


def format_rules(rules: Iterable[Rule]) -> str:
    """Render rules back into rule text"""
    return '\n'.join(f"{rule.keyword.upper()} => {rule.category}" for rule in rules)


class RuleMatcher:
    """
    Matches transaction descriptions against a rule list and keeps stats
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = list(rules or [])
        self.stats = {
            'matches': 0,
            'no_match': 0,
            'by_category': {},
        }

    @classmethod
    def from_text(cls, rule_text: Optional[str]) -> 'RuleMatcher':
        return cls(parse_rules(rule_text))

    def load_rules(self, rule_text: Optional[str]):
        """Replace the current rules with those parsed from text"""
        self.rules = parse_rules(rule_text)
        logger.debug("Loaded %d rules", len(self.rules))

    def categorize(self, description: Optional[str]) -> str:
        category = match_category(description, self.rules)
        if category == UNCATEGORISED:
            self.stats['no_match'] += 1
        else:
            self.stats['matches'] += 1
            self.stats['by_category'][category] = self.stats['by_category'].get(category, 0) + 1
        return category

    def categorize_batch(self, transactions: List[Transaction]) -> List[Transaction]:
        for txn in transactions:
            txn.category = self.categorize(txn.description)
        return transactions

    def summary(self) -> Dict:
        total = self.stats['matches'] + self.stats['no_match']
        return {
            'total': total,
            'matches': self.stats['matches'],
            'no_match': self.stats['no_match'],
            'match_rate': (self.stats['matches'] / total) if total else 0.0,
            'by_category': dict(self.stats['by_category']),
        }

    def print_stats(self):
        """Print matching statistics"""
        total = self.stats['matches'] + self.stats['no_match']
        if total == 0:
            print("No transactions processed yet")
            return

        print("\n" + "=" * 80)
        print("📊 RULE MATCHER STATISTICS")
        print("=" * 80)
        print(f"Total transactions: {total}")
        print(f"  ✅ Matched: {self.stats['matches']} ({self.stats['matches']/total*100:.1f}%)")
        print(f"  ❌ No match: {self.stats['no_match']} ({self.stats['no_match']/total*100:.1f}%)")

        if self.stats['by_category']:
            print(f"\nMatches by category:")
            for category, count in sorted(self.stats['by_category'].items(),
                                          key=lambda x: x[1], reverse=True):
                print(f"  • {category}: {count}")
        print("=" * 80)
