#!/usr/bin/env python3
"""
Database initialization script

Creates the key/value table used when SPENDLITE_STORAGE=postgres, and
optionally seeds it with the sample rules.
"""
import argparse
import sys

from spendlite.core.rule_matcher import SAMPLE_RULES
from spendlite.exceptions import StorageError
from spendlite.utils.db_connection import check_connection
from spendlite.utils.storage import KEYS, PostgresStore, StateRepository


def main(argv=None):
    """Main initialization function"""
    parser = argparse.ArgumentParser(description='Initialise the SpendLite Postgres store')
    parser.add_argument('--table', default='spendlite_kv', help='Table name (default: spendlite_kv)')
    parser.add_argument('--seed-rules', action='store_true', help='Store the sample rules if none are saved')
    args = parser.parse_args(argv)

    print("=" * 80)
    print("🗄️  SPENDLITE DATABASE INITIALIZATION")
    print("=" * 80)

    print("\n🔌 Connecting to database...")
    ok, detail = check_connection()
    if not ok:
        print(f"   ❌ Database connection failed: {detail}")
        print("\nMake sure Postgres is running and SPENDLITE_DATABASE_URL or DB_* variables are set")
        sys.exit(1)
    print(f"   ✅ Connected (PostgreSQL {detail})")

    store = PostgresStore(table=args.table)
    try:
        print(f"\n📄 Creating table {args.table}...")
        store.ensure_table()
        print("   ✅ Success")

        repository = StateRepository(store)
        if repository.migrate():
            print("   ✅ Schema version recorded")

        if args.seed_rules:
            saved = store.get(KEYS['rules'])
            if saved and saved.strip():
                print("   ℹ️  Rules already saved, not seeding")
            else:
                repository.save_rules(SAMPLE_RULES)
                print("   ✅ Seeded sample rules")
    except StorageError as e:
        print(f"   ❌ Error: {e}")
        sys.exit(1)
    finally:
        store.close()

    print("\n" + "=" * 80)
    print("✅ Database ready!")
    print("=" * 80)


if __name__ == "__main__":
    main()
