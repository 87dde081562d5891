"""
Keyword Suggestor

Proposes a rule keyword for a transaction, used to pre-fill the
"create rule from this row" prompt. Heuristics are kept in an ordered
table so new merchant patterns can be added without touching the lookup.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .models import UNCATEGORISED, Transaction

PAYPAL_WORD_RE = re.compile(r'\bPAYPAL\b', re.IGNORECASE)
LEADING_NOISE_RE = re.compile(r'^[\s\-:/*]+')
NEXT_TOKEN_RE = re.compile(r'^([A-Za-z0-9&._\-]+)')

VISA_MARKER = 'VISA-'


@dataclass(frozen=True)
class KeywordHeuristic:
    """A (detector, extractor) pair evaluated against the raw description"""
    name: str
    detector: Callable[[str], bool]
    extractor: Callable[[str], str]


def next_word_after(marker: str, description: str) -> str:
    """
    Token that follows the first occurrence of marker (case-insensitive)

    Separators like spaces, '-', ':', '/' and '*' between the marker and
    the token are skipped. Returns '' when there is no such token.
    """
    desc = description or ''
    idx = desc.lower().find(marker.lower())
    if idx == -1:
        return ''
    after = LEADING_NOISE_RE.sub('', desc[idx + len(marker):])
    match = NEXT_TOKEN_RE.match(after)
    return match.group(1) if match else ''


def first_token(text: str) -> str:
    parts = (text or '').split()
    return parts[0] if parts else ''


def _paypal_keyword(description: str) -> str:
    nxt = next_word_after('paypal', description)
    return 'PAYPAL' + (f' {nxt}' if nxt else '')


def _visa_keyword(description: str) -> str:
    pos = description.upper().find(VISA_MARKER)
    return first_token(description[pos + len(VISA_MARKER):])


HEURISTICS: List[KeywordHeuristic] = [
    # PayPal payments: the merchant is the word after "PAYPAL"
    KeywordHeuristic(
        name='paypal',
        detector=lambda desc: bool(PAYPAL_WORD_RE.search(desc)),
        extractor=_paypal_keyword,
    ),
    # Card purchases: "VISA-MERCHANT NAME ..."
    KeywordHeuristic(
        name='visa',
        detector=lambda desc: VISA_MARKER in desc.upper(),
        extractor=_visa_keyword,
    ),
]


def register_heuristic(heuristic: KeywordHeuristic, index: Optional[int] = None):
    """Add a heuristic; by default it is tried after the existing ones"""
    if index is None:
        HEURISTICS.append(heuristic)
    else:
        HEURISTICS.insert(index, heuristic)


def suggest_keyword(description: Optional[str]) -> str:
    desc = description or ''
    for heuristic in HEURISTICS:
        if heuristic.detector(desc):
            return heuristic.extractor(desc).upper()
    return first_token(desc).upper()


def suggest_keyword_and_category(txn: Transaction) -> Tuple[str, str]:
    """
    Suggested (keyword, category) for a new rule based on this transaction

    The category defaults to the transaction's current one.
    """
    return suggest_keyword(txn.description), (txn.category or UNCATEGORISED).upper()
