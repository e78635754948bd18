import os
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional

import pymysql
from pymysql.constants import CLIENT
from dotenv import load_dotenv

from utils.errors import DataAccessError

# Configure logging for database operations
logger = logging.getLogger(__name__)


class QueryResult(NamedTuple):
    row_count: int
    rows: List[Dict[str, Any]]
    last_row_id: Optional[int] = None


def get_db_settings() -> dict:
    """Resolve connection settings from the environment (.env supported)."""
    load_dotenv()

    environment = os.getenv("ENVIRONMENT", "local").lower()

    if environment == "local":
        prefix = "LOCAL_DB_"
        defaults = {"HOST": "localhost", "PORT": "3306", "USER": "root", "NAME": "graham_sis"}
    elif environment == "production" or environment == "online":
        prefix = "ONLINE_DB_"
        defaults = {"HOST": "localhost", "PORT": "3306", "USER": "graham_sis", "NAME": "graham_sis"}
    else:
        raise ValueError(
            f"Invalid ENVIRONMENT value: {environment}. Must be 'local' or 'production'/'online'"
        )

    return {
        "environment": environment,
        "host": os.getenv(prefix + "HOST", defaults["HOST"]),
        "port": int(os.getenv(prefix + "PORT", defaults["PORT"])),
        "user": os.getenv(prefix + "USER", defaults["USER"]),
        "password": os.getenv(prefix + "PASSWORD", ""),
        "database": os.getenv(prefix + "NAME", defaults["NAME"]),
    }


def get_db_connection():
    """Open a new PyMySQL connection.

    Every call returns a fresh connection; callers own it and must close it.
    Autocommit stays off so a caller can group several statements.
    """
    settings = get_db_settings()
    try:
        conn = pymysql.connect(
            host=settings["host"],
            port=settings["port"],
            user=settings["user"],
            password=settings["password"],
            database=settings["database"],
            charset="utf8mb4",
            cursorclass=pymysql.cursors.DictCursor,
            autocommit=False,
            # rowcount reports matched rows, so an UPDATE to the same value still counts
            client_flag=CLIENT.FOUND_ROWS,
            connect_timeout=10,
        )
    except pymysql.MySQLError as e:
        logger.error(f"PyMySQL database connection failed: {str(e)}")
        raise DataAccessError("Database connection failed", _error_code(e)) from e
    return conn


def _error_code(exc) -> Optional[int]:
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def _log_statement(statement: str, parameters: tuple):
    timestamp = datetime.now().strftime("%b %d %Y %H:%M:%S")
    logger.info(f"{timestamp} {' '.join(statement.split())} {list(parameters)}")


def _execute(conn, statement: str, parameters: tuple) -> QueryResult:
    _log_statement(statement, parameters)
    try:
        with conn.cursor() as cursor:
            cursor.execute(statement, parameters)
            if cursor.description is not None:
                rows = [dict(row) for row in cursor.fetchall()]
                return QueryResult(len(rows), rows, None)
            return QueryResult(cursor.rowcount, [], cursor.lastrowid)
    except pymysql.MySQLError as e:
        logger.error(f"Statement failed: {str(e)}")
        raise DataAccessError("Database statement failed", _error_code(e)) from e


def _commit(conn):
    try:
        conn.commit()
    except pymysql.MySQLError as e:
        logger.error(f"Commit failed: {str(e)}")
        raise DataAccessError("Database commit failed", _error_code(e)) from e


def _rollback_quietly(conn):
    try:
        conn.rollback()
    except pymysql.MySQLError as e:
        logger.warning(f"Rollback failed: {str(e)}")


class Transaction:
    """Statements issued through one connection, committed together."""

    def __init__(self, conn):
        self._conn = conn

    def run_query(self, statement: str, *parameters) -> QueryResult:
        return _execute(self._conn, statement, parameters)


@contextmanager
def transaction():
    """Yield a Transaction; commit on success, roll back on any exception."""
    conn = get_db_connection()
    try:
        yield Transaction(conn)
        _commit(conn)
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def run_query(statement: str, *parameters) -> QueryResult:
    """Run one parameterized statement on its own connection and commit it."""
    conn = get_db_connection()
    try:
        result = _execute(conn, statement, parameters)
        _commit(conn)
        return result
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def check_database_connectivity():
    """Attempt a simple DB connection and SELECT 1. Return (ok: bool, message: str)."""
    try:
        run_query("SELECT 1")
        return True, "Connected and SELECT 1 succeeded"
    except DataAccessError as e:
        return False, f"DB connection failed: {e}"
