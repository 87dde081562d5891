"""
Postgres connection settings for the key/value store

A full DSN in SPENDLITE_DATABASE_URL wins; otherwise the DB_* variables
are used.
"""
import os
from typing import Dict, Optional, Tuple

import psycopg2
from dotenv import load_dotenv


# Load environment variables
load_dotenv()


def connection_params() -> Dict:
    """Keyword arguments for psycopg2.connect() built from DB_* variables"""
    return {
        'host': os.getenv('DB_HOST', 'localhost'),
        'port': int(os.getenv('DB_PORT', '5432')),
        'database': os.getenv('DB_NAME', 'spendlite'),
        'user': os.getenv('DB_USER', 'spendlite'),
        'password': os.getenv('DB_PASSWORD', ''),
    }


def get_db_connection(dsn: Optional[str] = None):
    """
    Open a connection to the SpendLite database

    Args:
        dsn: libpq connection string (default: SPENDLITE_DATABASE_URL, else DB_* vars)

    Returns:
        psycopg2 connection object
    """
    dsn = dsn or os.getenv('SPENDLITE_DATABASE_URL')
    if dsn:
        return psycopg2.connect(dsn)
    return psycopg2.connect(**connection_params())


def check_connection(dsn: Optional[str] = None) -> Tuple[bool, str]:
    """
    Run a trivial query against the database

    Returns:
        (True, server version) on success, (False, error message) otherwise
    """
    try:
        conn = get_db_connection(dsn)
    except psycopg2.Error as e:
        return False, str(e).strip()
    try:
        with conn.cursor() as cursor:
            cursor.execute("SHOW server_version")
            version = cursor.fetchone()[0]
        return True, version
    except psycopg2.Error as e:
        return False, str(e).strip()
    finally:
        conn.close()
