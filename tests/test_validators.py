import pytest

from utils import validators
from utils.pagination import paginate


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("jsmith01", ("jsmith01", [])),
        ("  padded  ", ("padded", [])),
        ("", (None, ["All fields are required"])),
        (None, (None, ["All fields are required"])),
        ("j.smith", (None, ["Only numbers and letters are allowed"])),
        ("j smith", (None, ["Only numbers and letters are allowed"])),
    ],
)
def test_validate_username(raw, expected):
    assert validators.validate_username(raw) == expected


def test_validate_full_name():
    assert validators.validate_full_name("Mary-Jane O'Neil") == ("Mary-Jane O'Neil", [])
    assert validators.validate_full_name("R2D2") == (None, ["That is not a valid name"])


def test_validate_course_name():
    assert validators.validate_course_name("Algebra 2") == ("Algebra 2", [])
    assert validators.validate_course_name("   ") == (None, ["Please enter a course name"])
    assert validators.validate_course_name("Art; DROP") == (None, ["Only numbers and letters are allowed"])


@pytest.mark.parametrize("raw, ok", [("1", True), ("8", True), ("0", False), ("9", False), ("x", False), (None, False)])
def test_validate_period(raw, ok):
    value, errors = validators.validate_period(raw)
    assert (errors == []) is ok
    if ok:
        assert value == int(raw)


@pytest.mark.parametrize("raw, ok", [("9", True), ("12", True), ("8", False), ("13", False), ("", False)])
def test_validate_grade_level(raw, ok):
    _, errors = validators.validate_grade_level(raw)
    assert (errors == []) is ok


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("95", 95.0),
        ("0", 0.0),
        ("100", 100.0),
        ("87.5", 87.5),
        (" 72.1 ", 72.1),
    ],
)
def test_validate_grade_accepts(raw, expected):
    assert validators.validate_grade(raw) == (expected, [])


@pytest.mark.parametrize("raw", ["100.1", "101", "-3", "87.55", "abc", "1e2"])
def test_validate_grade_rejects(raw):
    assert validators.validate_grade(raw) == (None, ["That is not a valid grade"])


def test_validate_password():
    assert validators.validate_password("secret123") == ("secret123", [])
    assert validators.validate_password("secret123", "secret123") == ("secret123", [])
    assert validators.validate_password("short") == (None, ["Passwords must be at least 6 characters"])
    assert validators.validate_password("secret123", "secret124") == (None, ["Passwords do not match"])


def test_collect_merges_values_and_errors():
    values, errors = validators.collect(
        validators.validate_username("amy"),
        validators.validate_period("11"),
        validators.validate_grade("bad"),
    )
    assert values == ["amy", None, None]
    assert errors == ["That is not a valid period", "That is not a valid grade"]


def test_parse_int():
    assert validators.parse_int(" 7 ") == 7
    assert validators.parse_int("seven") is None
    assert validators.parse_int(None) is None


def test_paginate_offsets():
    assert paginate(2, 5, 12) == {"page": 2, "limit": 5, "offset": 5, "total": 12, "number_pages": 3}


def test_paginate_clamps_page():
    assert paginate(99, 5, 12)["page"] == 3
    assert paginate(0, 5, 12)["page"] == 1
    assert paginate("junk", 5, 12)["page"] == 1


def test_paginate_empty_result_has_one_page():
    result = paginate(3, 5, 0)
    assert result["number_pages"] == 1
    assert result["page"] == 1
    assert result["offset"] == 0
