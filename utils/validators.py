"""Form validation for the SIS pages.

Each validator returns ``(value, errors)``: the cleaned value (or None) and a
list of user-facing messages. Routes collect the messages and flash them.
"""
import re
from typing import List, Optional, Tuple

_USERNAME_RE = re.compile(r"^[A-Za-z0-9]+$")
_PERSON_NAME_RE = re.compile(r"^[A-Za-z \-']+$")
_COURSE_NAME_RE = re.compile(r"^[A-Za-z0-9 \-']+$")
_GRADE_RE = re.compile(r"^\d{1,3}(\.\d)?$")

MIN_PASSWORD_LENGTH = 6


def parse_int(raw) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def validate_username(raw) -> Tuple[Optional[str], List[str]]:
    value = (raw or "").strip()
    if not value:
        return None, ["All fields are required"]
    if not _USERNAME_RE.match(value):
        return None, ["Only numbers and letters are allowed"]
    return value, []


def validate_full_name(raw) -> Tuple[Optional[str], List[str]]:
    value = (raw or "").strip()
    if not value:
        return None, ["All fields are required"]
    if not _PERSON_NAME_RE.match(value):
        return None, ["That is not a valid name"]
    return value, []


def validate_course_name(raw) -> Tuple[Optional[str], List[str]]:
    value = (raw or "").strip()
    if not value:
        return None, ["Please enter a course name"]
    if not _COURSE_NAME_RE.match(value):
        return None, ["Only numbers and letters are allowed"]
    return value, []


def validate_period(raw) -> Tuple[Optional[int], List[str]]:
    value = parse_int(raw)
    if value is None or not 1 <= value <= 8:
        return None, ["That is not a valid period"]
    return value, []


def validate_grade_level(raw) -> Tuple[Optional[int], List[str]]:
    value = parse_int(raw)
    if value is None or not 9 <= value <= 12:
        return None, ["That is not a valid grade level"]
    return value, []


def validate_grade(raw) -> Tuple[Optional[float], List[str]]:
    """A score in [0, 100] with at most one fractional digit."""
    value = (raw or "").strip()
    if not value:
        return None, ["All fields are required"]
    if not _GRADE_RE.match(value):
        return None, ["That is not a valid grade"]
    grade = float(value)
    if not 0 <= grade <= 100:
        return None, ["That is not a valid grade"]
    return grade, []


def validate_password(raw, confirm=None) -> Tuple[Optional[str], List[str]]:
    value = raw or ""
    if len(value) < MIN_PASSWORD_LENGTH:
        return None, [f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters"]
    if confirm is not None and value != confirm:
        return None, ["Passwords do not match"]
    return value, []


def collect(*results):
    """Merge validator results into (values, errors)."""
    values = []
    errors = []
    for value, messages in results:
        values.append(value)
        errors.extend(messages)
    return values, errors
