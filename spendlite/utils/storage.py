"""
Persistence

A small key/value string store (memory, JSON file or Postgres) plus a
versioned repository that maps SpendLite state onto it. Writes are
best-effort: a failing backend is logged and the session carries on in
memory.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import psycopg2

from ..config import Settings
from ..exceptions import StorageError
from ..logging_setup import get_logger
from ..core.models import Transaction

logger = get_logger(__name__)


class KeyValueStore:
    """Interface for string key/value backends"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str):
        raise NotImplementedError

    def remove(self, key: str):
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store, used for tests and --dry-run"""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = str(value)

    def remove(self, key: str):
        self.data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self.data)


class JsonFileStore(KeyValueStore):
    """Stores all keys in one JSON object on disk"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8') or '{}')
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return data

    def _write(self, data: Dict[str, str]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
            tmp_path.write_text(json.dumps(data, indent=2), encoding='utf-8')
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str):
        data = self._read()
        data[key] = str(value)
        self._write(data)

    def remove(self, key: str):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> List[str]:
        return list(self._read())


class PostgresStore(KeyValueStore):
    """Key/value rows in a Postgres table (see `spendlite-init-db`)"""

    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS {table} (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """

    def __init__(self, connection_factory: Optional[Callable] = None, table: str = 'spendlite_kv'):
        if connection_factory is None:
            from .db_connection import get_db_connection
            connection_factory = get_db_connection
        self.connection_factory = connection_factory
        self.table = table
        self._conn = None

    def _connection(self):
        if self._conn is None or getattr(self._conn, 'closed', 0):
            try:
                self._conn = self.connection_factory()
            except psycopg2.Error as e:
                raise StorageError(f"Database connection failed: {e}") from e
        return self._conn

    def _execute(self, sql: str, params: tuple = (), fetch: str = ''):
        conn = self._connection()
        cursor = None
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            if fetch == 'one':
                result = cursor.fetchone()
            elif fetch == 'all':
                result = cursor.fetchall()
            else:
                result = None
            conn.commit()
            return result
        except psycopg2.Error as e:
            # A dropped connection cannot roll back; the next call reconnects
            if not getattr(conn, 'closed', 0):
                conn.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            if cursor is not None:
                cursor.close()

    def ensure_table(self):
        self._execute(self.CREATE_TABLE_SQL.format(table=self.table))

    def get(self, key: str) -> Optional[str]:
        row = self._execute(f"SELECT value FROM {self.table} WHERE key = %s", (key,), fetch='one')
        return row[0] if row else None

    def set(self, key: str, value: str):
        self._execute(f"""
            INSERT INTO {self.table} (key, value) VALUES (%s, %s)
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
        """, (key, str(value)))

    def remove(self, key: str):
        self._execute(f"DELETE FROM {self.table} WHERE key = %s", (key,))

    def keys(self) -> List[str]:
        rows = self._execute(f"SELECT key FROM {self.table} ORDER BY key", fetch='all')
        return [row[0] for row in rows or []]

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None


def make_store(settings: Settings) -> KeyValueStore:
    """Build the backend selected by SPENDLITE_STORAGE"""
    if settings.storage == 'memory':
        return MemoryStore()
    if settings.storage == 'postgres':
        return PostgresStore()
    return JsonFileStore(settings.state_path)


# --- Versioned state schema

SCHEMA_VERSION = 2
VERSION_KEY = 'spendlite.schema_version'

KEYS = {
    'rules': 'spendlite.rules',
    'category_filter': 'spendlite.category_filter',
    'month_filter': 'spendlite.month_filter',
    'transactions_collapsed': 'spendlite.transactions_collapsed',
    'transactions': 'spendlite.transactions',
}

# Keys written by version 1 (the browser build); first match wins
LEGACY_KEYS = {
    'rules': ['spendlite_rules_v6626'],
    'category_filter': ['spendlite_filter_v6626'],
    'month_filter': ['spendlite_month_v6627'],
    'transactions_collapsed': ['spendlite_txns_collapsed_v7'],
    'transactions': ['spendlite_txns_json_v7', 'spendlite_txns_json'],
}


@dataclass
class PersistedState:
    rule_text: Optional[str] = None
    category_filter: str = ''
    month_filter: str = ''
    transactions_collapsed: bool = True
    transactions: List[Transaction] = field(default_factory=list)


class StateRepository:
    """
    Reads and writes SpendLite state through a KeyValueStore

    Every public method swallows StorageError; reads fall back to defaults.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _get(self, name: str) -> Optional[str]:
        try:
            return self.store.get(KEYS[name])
        except StorageError as e:
            logger.warning("Could not read %s: %s", name, e)
            return None

    def _set(self, name: str, value: str):
        try:
            self.store.set(KEYS[name], value)
        except StorageError as e:
            logger.warning("Could not save %s: %s", name, e)

    def _remove(self, name: str):
        try:
            self.store.remove(KEYS[name])
        except StorageError as e:
            logger.warning("Could not clear %s: %s", name, e)

    def schema_version(self) -> int:
        try:
            value = self.store.get(VERSION_KEY)
        except StorageError as e:
            logger.warning("Could not read schema version: %s", e)
            return 0
        try:
            return int(value) if value is not None else 0
        except ValueError:
            return 0

    def migrate(self) -> bool:
        """
        Bring the store up to SCHEMA_VERSION

        Unversioned stores get their legacy keys copied into the current
        ones (existing current keys are never overwritten).

        Returns:
            True if a migration ran
        """
        if self.schema_version() >= SCHEMA_VERSION:
            return False

        try:
            for name, legacy_keys in LEGACY_KEYS.items():
                if self.store.get(KEYS[name]) is not None:
                    continue
                for legacy_key in legacy_keys:
                    value = self.store.get(legacy_key)
                    if value is not None:
                        self.store.set(KEYS[name], value)
                        logger.info("Migrated %s -> %s", legacy_key, KEYS[name])
                        break
            self.store.set(VERSION_KEY, str(SCHEMA_VERSION))
        except StorageError as e:
            logger.warning("State migration failed: %s", e)
            return False
        return True

    def load(self) -> PersistedState:
        self.migrate()
        return PersistedState(
            rule_text=self._get('rules'),
            category_filter=(self._get('category_filter') or '').strip().upper(),
            month_filter=(self._get('month_filter') or '').strip(),
            transactions_collapsed=self._get('transactions_collapsed') != 'false',
            transactions=self._load_transactions(),
        )

    def _load_transactions(self) -> List[Transaction]:
        raw = self._get('transactions')
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Ignoring unreadable saved transactions: %s", e)
            return []
        if not isinstance(data, list):
            return []
        return [Transaction.from_dict(item) for item in data if isinstance(item, dict)]

    def save_rules(self, rule_text: str):
        self._set('rules', rule_text or '')

    def save_category_filter(self, category: str):
        if category:
            self._set('category_filter', category)
        else:
            self._remove('category_filter')

    def save_month_filter(self, month: str):
        if month:
            self._set('month_filter', month)
        else:
            self._remove('month_filter')

    def save_collapsed(self, collapsed: bool):
        self._set('transactions_collapsed', 'true' if collapsed else 'false')

    def save_transactions(self, transactions: List[Transaction]):
        self._set('transactions', json.dumps([txn.to_dict() for txn in transactions]))
