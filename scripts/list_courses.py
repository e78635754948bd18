"""List courses with their teacher and enrollment count using the app's repository.
Run from the repo root:

    python scripts/list_courses.py

This uses the same DB configuration as the app (env vars / .env).
"""

import os
import sys

# Ensure we can import utils from the repo root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from utils import repository
from utils.errors import DataAccessError


def main(limit=200):
    try:
        total = repository.get_classes_count()
        rows = repository.get_class_list(limit, 0)
    except DataAccessError as e:
        print(f"Database query failed: {e}")
        return 2

    if not rows:
        print("No courses found in the database (empty result set).")
    else:
        print(f"Found {total} courses (showing up to {limit}):\n")
        for r in rows:
            print(
                f"{r['course_id']:>5}  period {r['period']}  {r['course_name']:<30} "
                f"{r['teacher_name'] or '-':<25} {r['student_count']} students"
            )

    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
