"""
Domain operations over the SIS schema.

Every function is stateless: callers pass principals and ids explicitly and get
plain dicts back, so blueprints and templates stay independent of the driver.
Composite operations run inside one ``transaction()`` and roll back as a unit.
"""
import logging
from typing import Dict, List, Tuple

from pymysql.constants import ER
from werkzeug.security import generate_password_hash, check_password_hash

from utils import db_conn
from utils.errors import (
    DataAccessError,
    NotFoundError,
    PeriodUnavailableError,
    UsernameTakenError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

# Returned by get_user_id() for call sites that only ask "is this name free?"
NO_SUCH_USER = -1

ROLES = ("student", "teacher", "administrator")

_ROSTER_COLUMNS_SQL = """
    s.user_id AS user_id,
    s.id AS student_id,
    s.name AS name,
    s.grade AS grade_level,
    g.grade AS grade,
    c.id AS course_id,
    c.name AS course_name
"""

_ROSTER_FROM_SQL = """
    FROM users AS u
    JOIN teachers AS t ON t.user_id = u.id
    JOIN courses AS c ON c.teacher_id = t.id
    JOIN students_courses AS g ON g.course_id = c.id
    JOIN students AS s ON s.id = g.student_id
"""

_ROSTER_BY_PERIOD_WHERE = "WHERE u.id = %s AND c.period = %s"
_ROSTER_BY_COURSE_WHERE = "WHERE c.id = %s"


def _expect_rows(result, message):
    if result.row_count == 0:
        raise DataAccessError(message)


# --- Authentication & identity ------------------------------------------------


def authenticate(username: str, password: str) -> Tuple[bool, int]:
    """Check credentials; unknown users and bad passwords look the same."""
    result = db_conn.run_query(
        "SELECT password, id FROM users WHERE username = %s", username
    )
    if result.row_count == 0:
        return False, 0

    row = result.rows[0]
    return check_password_hash(row["password"], password), row["id"]


def get_role(user_id: int) -> str:
    result = db_conn.run_query("SELECT role FROM users WHERE id = %s", user_id)
    if result.row_count != 1:
        raise NotFoundError("That user does not exist")
    return result.rows[0]["role"]


def get_full_name(username: str) -> str:
    # A user row should carry one profile; prefer student, then teacher, then admin.
    result = db_conn.run_query(
        """
        SELECT s.name AS student_name, t.name AS teacher_name, a.name AS admin_name
          FROM users AS u
          LEFT JOIN students AS s ON s.user_id = u.id
          LEFT JOIN teachers AS t ON t.user_id = u.id
          LEFT JOIN admin AS a ON a.user_id = u.id
         WHERE u.username = %s
        """,
        username,
    )
    if result.row_count == 0:
        return ""
    row = result.rows[0]
    return row["student_name"] or row["teacher_name"] or row["admin_name"] or ""


def get_user_id(username: str) -> int:
    result = db_conn.run_query("SELECT id FROM users WHERE username = %s", username)
    if result.row_count == 0:
        return NO_SUCH_USER
    return result.rows[0]["id"]


def get_student_id(user_id: int) -> int:
    result = db_conn.run_query(
        "SELECT id FROM students WHERE user_id = %s", user_id
    )
    if result.row_count == 0:
        raise NotFoundError("That student does not exist")
    return result.rows[0]["id"]


def get_teacher_id(user_id: int) -> int:
    result = db_conn.run_query(
        "SELECT id FROM teachers WHERE user_id = %s", user_id
    )
    if result.row_count == 0:
        raise NotFoundError("That teacher does not exist")
    return result.rows[0]["id"]


def get_student_name(student_id: int) -> str:
    result = db_conn.run_query("SELECT name FROM students WHERE id = %s", student_id)
    if result.row_count != 1:
        raise NotFoundError("That student does not exist")
    return result.rows[0]["name"]


def get_student_profile(user_id: int) -> Dict:
    result = db_conn.run_query(
        "SELECT id AS student_id, name, grade AS grade_level FROM students WHERE user_id = %s",
        user_id,
    )
    if result.row_count == 0:
        raise NotFoundError("That is not a student")
    return result.rows[0]


# --- Account provisioning -----------------------------------------------------
# The private helpers take a run_query callable so they compose inside one
# transaction.


def _insert_user(run_query, username, role, password):
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    try:
        result = run_query(
            "INSERT INTO users (username, password, role) VALUES (%s, %s, %s)",
            username,
            generate_password_hash(password),
            role,
        )
    except DataAccessError as e:
        if e.code == ER.DUP_ENTRY:
            raise UsernameTakenError() from e
        raise
    _expect_rows(result, "User was not created")
    return result.last_row_id


def _insert_student(run_query, user_id, name, grade_level):
    result = run_query(
        "INSERT INTO students (user_id, name, grade) VALUES (%s, %s, %s)",
        user_id,
        name,
        grade_level,
    )
    _expect_rows(result, "Student was not created")
    return result.last_row_id


def _insert_teacher(run_query, user_id, name):
    result = run_query(
        "INSERT INTO teachers (user_id, name) VALUES (%s, %s)", user_id, name
    )
    _expect_rows(result, "Teacher was not created")
    return result.last_row_id


def _insert_enrollment(run_query, student_id, course_id, grade):
    try:
        result = run_query(
            "INSERT INTO students_courses (student_id, course_id, grade) VALUES (%s, %s, %s)",
            student_id,
            course_id,
            grade,
        )
    except DataAccessError as e:
        if e.code == ER.DUP_ENTRY:
            raise ValidationFailedError("That student is already in this course") from e
        if e.code == ER.NO_REFERENCED_ROW_2:
            raise NotFoundError("That student or course does not exist") from e
        raise
    _expect_rows(result, "Enrollment was not created")
    return True


def _insert_course(run_query, teacher_id, name, period):
    try:
        result = run_query(
            "INSERT INTO courses (teacher_id, name, period) VALUES (%s, %s, %s)",
            teacher_id,
            name,
            period,
        )
    except DataAccessError as e:
        if e.code == ER.DUP_ENTRY:
            raise PeriodUnavailableError() from e
        if e.code == ER.NO_REFERENCED_ROW_2:
            raise NotFoundError("That teacher does not exist") from e
        raise
    _expect_rows(result, "Course was not created")
    return result.last_row_id


def create_user(username: str, role: str, password: str) -> int:
    """Insert a user with a hashed initial password and return its id."""
    with db_conn.transaction() as tx:
        return _insert_user(tx.run_query, username, role, password)


def create_student(user_id: int, name: str, grade_level: int) -> int:
    with db_conn.transaction() as tx:
        return _insert_student(tx.run_query, user_id, name, grade_level)


def create_teacher(username: str, name: str, password: str) -> int:
    with db_conn.transaction() as tx:
        user_id = _insert_user(tx.run_query, username, "teacher", password)
        teacher_id = _insert_teacher(tx.run_query, user_id, name)
    logger.info(f"Teacher account {username} created (teacher id {teacher_id})")
    return teacher_id


def add_student_to_course(student_id: int, course_id: int, grade: float) -> bool:
    with db_conn.transaction() as tx:
        return _insert_enrollment(tx.run_query, student_id, course_id, grade)


def create_new_student(
    username: str,
    full_name: str,
    grade_level: int,
    grade: float,
    course_id: int,
    password: str,
) -> bool:
    """Create user, student profile and enrollment, all or nothing."""
    with db_conn.transaction() as tx:
        user_id = _insert_user(tx.run_query, username, "student", password)
        student_id = _insert_student(tx.run_query, user_id, full_name, grade_level)
        _insert_enrollment(tx.run_query, student_id, course_id, grade)
    logger.info(f"Student account {username} created and enrolled in course {course_id}")
    return True


# --- Courses ------------------------------------------------------------------


def create_course(teacher_id: int, name: str, period: int) -> int:
    """Insert a course; the store rejects a second course for the same period."""
    with db_conn.transaction() as tx:
        course_id = _insert_course(tx.run_query, teacher_id, name, period)
    logger.info(f"Course {course_id} created for teacher {teacher_id}, period {period}")
    return course_id


def create_teacher_with_course(
    username: str, name: str, password: str, course_name: str, period: int
) -> int:
    with db_conn.transaction() as tx:
        user_id = _insert_user(tx.run_query, username, "teacher", password)
        teacher_id = _insert_teacher(tx.run_query, user_id, name)
        course_id = _insert_course(tx.run_query, teacher_id, course_name, period)
    logger.info(f"Teacher account {username} created with course {course_id}")
    return course_id


def is_teacher_available(teacher_id: int, period: int) -> bool:
    result = db_conn.run_query(
        "SELECT id FROM courses WHERE teacher_id = %s AND period = %s",
        teacher_id,
        period,
    )
    return result.row_count == 0


def drop_course(course_id: int) -> bool:
    result = db_conn.run_query("DELETE FROM courses WHERE id = %s", course_id)
    return result.row_count > 0


def drop_student(course_id: int, student_id: int) -> bool:
    result = db_conn.run_query(
        "DELETE FROM students_courses WHERE course_id = %s AND student_id = %s",
        course_id,
        student_id,
    )
    return result.row_count > 0


def update_grade(course_id: int, student_id: int, new_grade: float) -> bool:
    result = db_conn.run_query(
        "UPDATE students_courses SET grade = %s WHERE course_id = %s AND student_id = %s",
        new_grade,
        course_id,
        student_id,
    )
    return result.row_count > 0


def update_course_name(course_id: int, new_name: str) -> bool:
    result = db_conn.run_query(
        "UPDATE courses SET name = %s WHERE id = %s", new_name, course_id
    )
    if result.row_count == 0:
        raise NotFoundError("That course does not exist")
    return True


def _course_exists(course_id: int) -> bool:
    result = db_conn.run_query("SELECT id FROM courses WHERE id = %s", course_id)
    return result.row_count != 0


def get_course_id(teacher_user_id: int, period: int) -> int:
    result = db_conn.run_query(
        """
        SELECT c.id FROM courses AS c
          JOIN teachers AS t ON t.id = c.teacher_id
         WHERE t.user_id = %s AND c.period = %s
        """,
        teacher_user_id,
        period,
    )
    if result.row_count == 0:
        raise NotFoundError("Course not found")
    return result.rows[0]["id"]


def get_class_info(course_id: int) -> Dict:
    result = db_conn.run_query(
        """
        SELECT c.name AS course_name, t.name AS teacher_name, c.period AS period
          FROM courses AS c
          JOIN teachers AS t ON t.id = c.teacher_id
         WHERE c.id = %s
        """,
        course_id,
    )
    if result.row_count == 0:
        raise NotFoundError("Course not found")
    return result.rows[0]


def verify_teacher(course_id: int, user_id: int) -> bool:
    """True iff ``user_id`` belongs to the teacher who owns ``course_id``."""
    result = db_conn.run_query(
        """
        SELECT t.user_id AS user_id FROM courses AS c
          JOIN teachers AS t ON t.id = c.teacher_id
         WHERE c.id = %s
        """,
        course_id,
    )
    if result.row_count == 0:
        raise NotFoundError("Course not found")
    return result.rows[0]["user_id"] == user_id


# --- Rosters & schedules ------------------------------------------------------


def get_class_roster(teacher_user_id: int, period: int, limit: int, offset: int) -> List[Dict]:
    result = db_conn.run_query(
        f"""
        SELECT {_ROSTER_COLUMNS_SQL}
        {_ROSTER_FROM_SQL}
        {_ROSTER_BY_PERIOD_WHERE}
         ORDER BY LOWER(s.name) ASC
         LIMIT %s OFFSET %s
        """,
        teacher_user_id,
        period,
        limit,
        offset,
    )
    return result.rows


def get_class_roster_admin(course_id: int, limit: int, offset: int) -> List[Dict]:
    if not _course_exists(course_id):
        raise NotFoundError("That course does not exist")

    result = db_conn.run_query(
        f"""
        SELECT {_ROSTER_COLUMNS_SQL}
        {_ROSTER_FROM_SQL}
        {_ROSTER_BY_COURSE_WHERE}
         ORDER BY LOWER(s.name) ASC
         LIMIT %s OFFSET %s
        """,
        course_id,
        limit,
        offset,
    )
    return result.rows


def get_roster_count(teacher_user_id: int, period: int) -> int:
    result = db_conn.run_query(
        f"SELECT COUNT(g.student_id) AS total {_ROSTER_FROM_SQL} {_ROSTER_BY_PERIOD_WHERE}",
        teacher_user_id,
        period,
    )
    if result.row_count == 0:
        return 0
    return int(result.rows[0]["total"])


def get_roster_count_admin(course_id: int) -> int:
    result = db_conn.run_query(
        f"SELECT COUNT(g.student_id) AS total {_ROSTER_FROM_SQL} {_ROSTER_BY_COURSE_WHERE}",
        course_id,
    )
    if result.row_count == 0:
        return 0
    return int(result.rows[0]["total"])


def get_student_classes(student_user_id: int) -> List[Dict]:
    # Raises NotFoundError for users without a student profile.
    get_student_id(student_user_id)

    result = db_conn.run_query(
        """
        SELECT c.period AS period, c.id AS course_id, c.name AS course_name,
               t.name AS teacher_name, g.grade AS grade
          FROM courses AS c
          JOIN students_courses AS g ON g.course_id = c.id
          JOIN students AS s ON s.id = g.student_id
          JOIN teachers AS t ON t.id = c.teacher_id
         WHERE s.user_id = %s
         ORDER BY c.period ASC
        """,
        student_user_id,
    )
    return result.rows


def get_teacher_schedule(teacher_user_id: int) -> List[Dict]:
    result = db_conn.run_query(
        """
        SELECT c.id AS course_id, c.name AS name, c.period AS period
          FROM courses AS c
          JOIN teachers AS t ON t.id = c.teacher_id
         WHERE t.user_id = %s
         ORDER BY c.period ASC
        """,
        teacher_user_id,
    )
    return result.rows


def get_class_list(limit: int, offset: int) -> List[Dict]:
    result = db_conn.run_query(
        """
        SELECT c.id AS course_id, c.period AS period, c.name AS course_name,
               t.name AS teacher_name, COUNT(sc.student_id) AS student_count
          FROM courses AS c
          LEFT JOIN teachers AS t ON t.id = c.teacher_id
          LEFT JOIN students_courses AS sc ON sc.course_id = c.id
         GROUP BY c.id, c.period, c.name, t.name
         ORDER BY c.period, c.name, t.name
         LIMIT %s OFFSET %s
        """,
        limit,
        offset,
    )
    return result.rows


def get_classes_count() -> int:
    result = db_conn.run_query("SELECT COUNT(id) AS total FROM courses")
    if result.row_count == 0:
        return 0
    return int(result.rows[0]["total"])


def get_teacher_list() -> List[Dict]:
    result = db_conn.run_query("SELECT id, name FROM teachers ORDER BY id ASC")
    return result.rows


def create_administrator(username: str, name: str, password: str) -> int:
    """Provision an administrator account with its display-name row."""
    with db_conn.transaction() as tx:
        user_id = _insert_user(tx.run_query, username, "administrator", password)
        result = tx.run_query(
            "INSERT INTO admin (user_id, name) VALUES (%s, %s)", user_id, name
        )
        _expect_rows(result, "Administrator was not created")
    logger.info(f"Administrator account {username} created")
    return user_id
