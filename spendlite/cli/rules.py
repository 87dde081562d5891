#!/usr/bin/env python3
"""
Rules CLI

Show, import, export and add categorisation rules. `suggest` walks through
creating a rule from a loaded transaction, pre-filled with a suggested
keyword and category.
"""
import argparse
import sys
from pathlib import Path
from typing import Optional

from spendlite.config import get_settings
from spendlite.core.parsing import to_title_case
from spendlite.core.session import Session
from spendlite.exceptions import RuleError
from spendlite.logging_setup import configure_logging
from spendlite.utils.storage import StateRepository, make_store


def prompt_with_default(prompt: str, default: str) -> Optional[str]:
    """Ask for a value; Enter keeps the default, 'q' cancels"""
    user_input = input(f"{prompt} [{default}]: ").strip()
    if user_input.lower() == 'q':
        return None
    return user_input or default


def cmd_show(session: Session, args):
    rules = session.state.rules
    if not rules:
        print("No rules defined")
        return
    print(f"📚 {len(rules)} rules (first match wins):")
    for i, rule in enumerate(rules, 1):
        print(f"{i:3d}. {rule.keyword.upper():<30} → {rule.category}")


def cmd_export(session: Session, args):
    out_path = Path(args.path)
    out_path.write_text(session.export_rules(), encoding='utf-8')
    print(f"💾 Exported rules to {out_path}")


def cmd_import(session: Session, args):
    try:
        session.import_rules_file(args.path)
    except RuleError as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ Imported {len(session.state.rules)} rules from {args.path}")


def cmd_add(session: Session, args):
    try:
        session.create_rule(args.keyword, args.category)
    except RuleError as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ {args.keyword.strip().upper()} => {args.category.strip().upper()}")


def cmd_suggest(session: Session, args):
    suggestion = session.suggest_rule(args.index)
    if suggestion is None:
        print(f"❌ No transaction at index {args.index} ({len(session.state.transactions)} loaded)")
        sys.exit(1)

    txn = session.state.transactions[args.index]
    print("\n" + "=" * 80)
    print(f"Date:         {txn.date}")
    print(f"Description:  {txn.description}")
    print(f"Amount:       {txn.amount:.2f}")
    print(f"Current:      {to_title_case(txn.category_key)}")
    print("=" * 80)

    keyword, category = suggestion
    keyword = prompt_with_default("Enter keyword to match", keyword)
    if not keyword:
        print("⏭️  Cancelled")
        return
    category = prompt_with_default("Enter category name", category)
    if not category:
        print("⏭️  Cancelled")
        return

    try:
        session.create_rule(keyword, category)
    except RuleError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"✅ Saved rule {keyword.strip().upper()} => {category.strip().upper()}")
    print(f"   Now categorised as: {to_title_case(session.state.transactions[args.index].category_key)}")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Manage SpendLite categorisation rules')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('show', help='List the active rules')

    p_export = sub.add_parser('export', help='Write the rule text to a file')
    p_export.add_argument('path', nargs='?', default='rules.txt')

    p_import = sub.add_parser('import', help='Replace the rules with a file')
    p_import.add_argument('path')

    p_add = sub.add_parser('add', help='Add or update a rule')
    p_add.add_argument('keyword')
    p_add.add_argument('category')

    p_suggest = sub.add_parser('suggest', help='Create a rule from a loaded transaction')
    p_suggest.add_argument('index', type=int, help='Transaction index as shown by spendlite-import')

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    session = Session.restore(StateRepository(make_store(settings)), settings=settings)

    commands = {
        'show': cmd_show,
        'export': cmd_export,
        'import': cmd_import,
        'add': cmd_add,
        'suggest': cmd_suggest,
    }
    commands[args.command](session, args)


if __name__ == "__main__":
    main()
