#!/usr/bin/env python3
"""
Database setup tool for Graham SIS.

Creates the tables from schema.sql and, optionally, the first administrator
account so someone can sign in and start adding courses.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --admin-username admin001 --admin-name "Site Admin"

The admin password is prompted for; nothing is derived from the username.
"""

import argparse
import getpass
import logging
import os
import sys

# Add repo root to path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from utils import db_conn, repository, validators
from utils.errors import DataAccessError, UsernameTakenError

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def load_schema_statements(path=os.path.join(ROOT, "schema.sql")):
    """Split schema.sql into individual statements."""
    with open(path, "r", encoding="utf-8") as f:
        sql = f.read()
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]


def create_tables():
    statements = load_schema_statements()
    logger.info(f"Applying {len(statements)} schema statements...")
    for statement in statements:
        db_conn.run_query(statement)
    logger.info("Database tables created successfully")


def create_admin(username, name):
    if repository.get_user_id(username) != repository.NO_SUCH_USER:
        logger.warning(f"User {username} already exists; skipping admin creation")
        return False

    password, errors = validators.validate_password(
        getpass.getpass("Admin password: "), getpass.getpass("Confirm password: ")
    )
    if errors:
        for message in errors:
            logger.error(message)
        return False

    try:
        repository.create_administrator(username, name, password)
    except UsernameTakenError:
        logger.warning(f"User {username} already exists; skipping admin creation")
        return False
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the Graham SIS schema")
    parser.add_argument("--admin-username", help="create an administrator with this username")
    parser.add_argument("--admin-name", default="Administrator", help="administrator display name")
    args = parser.parse_args(argv)

    try:
        create_tables()
        if args.admin_username:
            username, errors = validators.validate_username(args.admin_username)
            if errors:
                for message in errors:
                    logger.error(message)
                return 1
            if not create_admin(username, args.admin_name):
                return 1
    except DataAccessError as e:
        logger.error(f"Database setup failed: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
