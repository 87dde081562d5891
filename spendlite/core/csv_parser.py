"""
CSV Parser for Bank Statement Exports

Reads the 10-column statement export: date in column 2, debit/amount in
column 5 and the long description in column 9.
"""
import csv
import io
from pathlib import Path
from typing import List, Sequence, Union

from ..config import COL_AMOUNT, COL_DATE, COL_DESCRIPTION, MIN_COLUMNS
from ..exceptions import CsvIngestionError
from ..logging_setup import get_logger
from .models import Transaction
from .parsing import is_numeric_amount, parse_amount

logger = get_logger(__name__)


def read_rows(csv_text: str) -> List[List[str]]:
    """
    Split delimited text into rows of fields, skipping empty lines

    Raises:
        CsvIngestionError: if the text is not valid CSV
    """
    text = (csv_text or '').strip()
    if not text:
        return []

    try:
        reader = csv.reader(io.StringIO(text))
        rows = [row for row in reader if row and any(field != '' for field in row)]
    except csv.Error as e:
        raise CsvIngestionError(f"Could not read CSV: {e}") from e

    return rows


def _is_header(row: Sequence[str]) -> bool:
    amount_field = row[COL_AMOUNT] if len(row) > COL_AMOUNT else None
    # A blank debit cell is an ordinary credit row
    return bool(amount_field and amount_field.strip()) and not is_numeric_amount(amount_field)


def rows_to_transactions(rows: List[List[str]]) -> List[Transaction]:
    """
    Map raw rows onto transactions

    The first row is treated as a header when its amount field holds text
    that is not a number. Rows with fewer than 10 fields, or with neither a
    date nor a description, are skipped.
    """
    start_idx = 1 if rows and _is_header(rows[0]) else 0

    transactions = []
    skipped = 0
    for row in rows[start_idx:]:
        if len(row) < MIN_COLUMNS:
            skipped += 1
            continue

        effective_date = row[COL_DATE] or ''
        description = (row[COL_DESCRIPTION] or '').strip()
        if not effective_date and not description:
            skipped += 1
            continue

        transactions.append(Transaction(
            date=effective_date,
            amount=parse_amount(row[COL_AMOUNT]),
            description=description,
        ))

    if skipped:
        logger.debug("Skipped %d short or empty rows", skipped)
    return transactions


def parse_statement_csv(csv_text: str) -> List[Transaction]:
    """
    Parse a statement export into transactions

    Args:
        csv_text: Full text of the CSV export

    Returns:
        List of uncategorised transactions, in file order
    """
    transactions = rows_to_transactions(read_rows(csv_text))
    logger.info("Parsed %d transactions from CSV", len(transactions))
    return transactions


def load_statement_file(csv_path: Union[str, Path]) -> List[Transaction]:
    """Read and parse a statement export from disk (UTF-8, BOM tolerated)"""
    csv_path = Path(csv_path)
    try:
        text = csv_path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        raise CsvIngestionError(f"Could not read {csv_path}: {e}") from e
    return parse_statement_csv(text)
