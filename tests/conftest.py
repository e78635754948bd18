"""
Pytest configuration.

The app talks to MySQL through PyMySQL. Tests swap ``utils.db_conn.get_db_connection``
for a stand-in that speaks the same cursor protocol over an in-memory SQLite
database, so the real SQL in utils/repository.py runs unchanged (``%s`` markers
are rewritten to ``?``) and constraint failures surface as PyMySQL errors with
MySQL error numbers.
"""
import re
import sqlite3

import pymysql
import pytest
from pymysql.constants import ER

from app import app as flask_app
from utils import db_conn, repository

TEST_PASSWORD = "secret123"

SQLITE_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('student', 'teacher', 'administrator'))
);
CREATE TABLE students (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    grade INTEGER NOT NULL CHECK (grade BETWEEN 9 AND 12)
);
CREATE TABLE teachers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL
);
CREATE TABLE admin (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL
);
CREATE TABLE courses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    teacher_id INTEGER NOT NULL REFERENCES teachers(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    period INTEGER NOT NULL CHECK (period BETWEEN 1 AND 8),
    UNIQUE (teacher_id, period)
);
CREATE TABLE students_courses (
    student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    course_id INTEGER NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    grade REAL NOT NULL CHECK (grade BETWEEN 0 AND 100),
    PRIMARY KEY (student_id, course_id)
);
"""

_PLACEHOLDER = re.compile(r"%s")


def _as_pymysql_error(exc):
    message = str(exc)
    if isinstance(exc, sqlite3.IntegrityError):
        if "UNIQUE" in message:
            return pymysql.err.IntegrityError(ER.DUP_ENTRY, message)
        if "FOREIGN KEY" in message:
            return pymysql.err.IntegrityError(ER.NO_REFERENCED_ROW_2, message)
        if "NOT NULL" in message:
            return pymysql.err.IntegrityError(ER.BAD_NULL_ERROR, message)
        return pymysql.err.IntegrityError(3819, message)
    return pymysql.err.ProgrammingError(ER.PARSE_ERROR, message)


class FakeCursor:
    def __init__(self, conn):
        self._cursor = conn.cursor()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._cursor.close()
        return False

    @property
    def description(self):
        return self._cursor.description

    @property
    def rowcount(self):
        return self._cursor.rowcount

    @property
    def lastrowid(self):
        return self._cursor.lastrowid

    def execute(self, statement, parameters=()):
        try:
            self._cursor.execute(_PLACEHOLDER.sub("?", statement), tuple(parameters))
        except sqlite3.Error as e:
            raise _as_pymysql_error(e) from e

    def fetchall(self):
        return [dict(row) for row in self._cursor.fetchall()]


class FakeConnection:
    def __init__(self, database):
        self._database = database
        self.closed = False

    def cursor(self):
        return FakeCursor(self._database.sqlite)

    def commit(self):
        self._database.commits += 1
        self._database.sqlite.commit()

    def rollback(self):
        self._database.rollbacks += 1
        self._database.sqlite.rollback()

    def close(self):
        # The in-memory database outlives every "connection".
        self.closed = True
        self._database.closes += 1


class FakeDatabase:
    def __init__(self):
        self.sqlite = sqlite3.connect(":memory:", check_same_thread=False)
        self.sqlite.row_factory = sqlite3.Row
        self.sqlite.execute("PRAGMA foreign_keys = ON")
        self.sqlite.executescript(SQLITE_SCHEMA)
        self.opened = 0
        self.closes = 0
        self.commits = 0
        self.rollbacks = 0

    def connect(self):
        self.opened += 1
        return FakeConnection(self)

    def count(self, table):
        return self.sqlite.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


@pytest.fixture
def fake_db(monkeypatch):
    database = FakeDatabase()
    monkeypatch.setattr(db_conn, "get_db_connection", database.connect)
    yield database
    database.sqlite.close()


@pytest.fixture
def school(fake_db):
    """An administrator, two teachers and one course in period 3 taught by 'tbrown'."""
    admin_user_id = repository.create_administrator("admin", "Ada Admin", TEST_PASSWORD)
    teacher_id = repository.create_teacher("tbrown", "Tom Brown", TEST_PASSWORD)
    other_teacher_id = repository.create_teacher("sgreen", "Sue Green", TEST_PASSWORD)
    course_id = repository.create_course(teacher_id, "Algebra", 3)
    return {
        "admin_user_id": admin_user_id,
        "teacher_id": teacher_id,
        "teacher_user_id": repository.get_user_id("tbrown"),
        "other_teacher_id": other_teacher_id,
        "other_teacher_user_id": repository.get_user_id("sgreen"),
        "course_id": course_id,
    }


@pytest.fixture
def client(fake_db):
    flask_app.config.update(TESTING=True, WTF_CSRF_ENABLED=False, ENTRIES_PER_PAGE=5)
    with flask_app.test_client() as test_client:
        yield test_client


def login(client, username, password=TEST_PASSWORD):
    return client.post(
        "/users/login",
        data={"username": username, "password": password, "original_url": "/"},
        follow_redirects=False,
    )


def enroll(username, full_name, course_id, grade=90.0, grade_level=9):
    repository.create_new_student(username, full_name, grade_level, grade, course_id, TEST_PASSWORD)
    user_id = repository.get_user_id(username)
    return user_id, repository.get_student_id(user_id)
