#!/usr/bin/env python3
"""
Transaction import CLI

Imports a statement CSV, applies the rules and prints totals.
"""
import argparse
import sys
from pathlib import Path

from spendlite.config import get_settings
from spendlite.core.parsing import to_title_case
from spendlite.core.rule_matcher import RuleMatcher
from spendlite.core.session import Session
from spendlite.core.state import GoToPage, SetCategoryFilter, SetMonthFilter
from spendlite.exceptions import CsvIngestionError, RuleError
from spendlite.logging_setup import configure_logging
from spendlite.utils.storage import MemoryStore, StateRepository, make_store


def print_view(session: Session):
    """Print summary, category totals and the current page of transactions"""
    view = session.view()

    print("\n" + "=" * 80)
    print(f"📅 {view.month_label}" + (f"  (filtered by \"{view.category_filter}\")" if view.category_filter else ""))
    print("=" * 80)
    print(view.summary_line)

    print(f"\n📊 Category Totals:")
    for row in view.totals_rows:
        print(f"  • {to_title_case(row.category):<30} {row.total:>12.2f} {row.percent:>6.1f}%")
    print(f"  {'Total':<32} {view.grand_total:>12.2f} {'100%':>7}")

    print(f"\n📋 Transactions (page {view.page} / {view.total_pages}):")
    for row in view.rows:
        print(f"  [{row.index:>4}] {row.date:<12} {row.amount:>10.2f}  {to_title_case(row.category):<20} {row.description[:40]}")

    print("\n" + view.totals_bar)


def main(argv=None):
    """Main import function"""
    parser = argparse.ArgumentParser(description='Import a bank statement CSV and categorise it')
    parser.add_argument('csv_file', help='Path to statement CSV file')
    parser.add_argument('--rules', help='Rules file to use instead of the saved rules')
    parser.add_argument('--month', help="Month filter, e.g. 2024-03")
    parser.add_argument('--category', help='Category filter')
    parser.add_argument('--page', type=int, default=1, help='Page of transactions to show')
    parser.add_argument('--export-totals', nargs='?', const='', metavar='PATH',
                        help='Write the category totals report (default file name if PATH omitted)')
    parser.add_argument('--stats', action='store_true', help='Print rule match statistics')
    parser.add_argument('--dry-run', action='store_true', help='Do not save anything')

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        print(f"❌ File not found: {csv_path}")
        sys.exit(1)

    print("=" * 80)
    print("📥 TRANSACTION IMPORT")
    print("=" * 80)
    print(f"CSV File: {csv_path}")
    print(f"Storage: {'none (dry run)' if args.dry_run else settings.storage}")
    print("=" * 80)

    store = MemoryStore() if args.dry_run else make_store(settings)
    session = Session.restore(StateRepository(store), settings=settings)

    if args.rules:
        print(f"\n📚 Loading rules from {args.rules}...")
        try:
            session.import_rules_file(args.rules)
        except RuleError as e:
            print(f"   ❌ {e}")
            sys.exit(1)
    print(f"   ✅ {len(session.state.rules)} active rules")

    print(f"\n📄 Parsing CSV file...")
    try:
        count = session.load_csv_file(csv_path)
    except CsvIngestionError as e:
        print(f"   ❌ Import aborted: {e}")
        sys.exit(1)
    print(f"   ✅ Parsed {count} transactions")

    if args.stats:
        matcher = RuleMatcher(session.state.rules)
        for txn in session.state.transactions:
            matcher.categorize(txn.description)
        matcher.print_stats()

    if args.month is not None:
        session.dispatch(SetMonthFilter(args.month))
        if args.month and session.state.filters.month_filter != args.month:
            print(f"⚠️  No transactions in {args.month}, showing all months")
    if args.category is not None:
        session.dispatch(SetCategoryFilter(args.category))
    if args.page != 1:
        session.dispatch(GoToPage(args.page))

    print_view(session)

    if args.export_totals is not None:
        filename, report = session.export_totals()
        out_path = Path(args.export_totals or filename)
        out_path.write_text(report + '\n', encoding='utf-8')
        print(f"\n💾 Wrote category totals to {out_path}")

    print("\n" + "=" * 80)
    print("✅ Import complete!")
    print("=" * 80)


if __name__ == "__main__":
    main()
