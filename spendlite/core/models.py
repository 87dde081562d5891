"""
Transaction model
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional

from .parsing import parse_amount, parse_date_smart, year_month_key

UNCATEGORISED = 'UNCATEGORISED'


@dataclass
class Transaction:
    """One statement line item.

    ``date`` keeps the raw text from the export; ``resolved_date`` is the
    parsed calendar date (None when the text could not be parsed).
    ``category`` is overwritten every time rules are applied.
    """
    date: str
    amount: float
    description: str
    category: str = UNCATEGORISED
    resolved_date: Optional[date] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.resolved_date is None:
            self.resolved_date = parse_date_smart(self.date)

    @property
    def month_key(self) -> Optional[str]:
        if self.resolved_date is None:
            return None
        return year_month_key(self.resolved_date)

    @property
    def category_key(self) -> str:
        return (self.category or UNCATEGORISED).upper()

    def to_dict(self) -> Dict:
        return {
            'date': self.date,
            'amount': self.amount,
            'description': self.description,
            'category': self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Transaction':
        amount = data.get('amount', 0)
        if not isinstance(amount, (int, float)):
            amount = parse_amount(amount)
        return cls(
            date=str(data.get('date') or ''),
            amount=float(amount),
            description=str(data.get('description') or ''),
            category=str(data.get('category') or UNCATEGORISED),
        )
