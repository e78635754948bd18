"""
Authorization policy: who may do what to which course or schedule.

``authorize`` is a pure per-request decision over a resolved principal; the only
lookup it performs is course ownership through ``repository.verify_teacher``.
"""
import logging
from typing import NamedTuple, Optional

from utils import repository
from utils.errors import UnauthorizedError

logger = logging.getLogger(__name__)

ADMINISTRATOR = "administrator"
TEACHER = "teacher"
STUDENT = "student"

LOGIN = "login"
VIEW_HOME = "view_home"
VIEW_CLASS_LIST = "view_class_list"
VIEW_COURSE_ROSTER = "view_course_roster"
ADD_COURSE = "add_course"
VIEW_TEACHER_SCHEDULE = "view_teacher_schedule"
VIEW_STUDENT_SCHEDULE = "view_student_schedule"
RENAME_COURSE = "rename_course"
ADD_STUDENT = "add_student"
DROP_STUDENT = "drop_student"
UPDATE_GRADE = "update_grade"
DROP_COURSE = "drop_course"

COURSE_MUTATIONS = frozenset(
    {RENAME_COURSE, ADD_STUDENT, DROP_STUDENT, UPDATE_GRADE, DROP_COURSE}
)
ADMIN_ONLY = frozenset({VIEW_CLASS_LIST, VIEW_COURSE_ROSTER, ADD_COURSE})


class Decision(NamedTuple):
    allowed: bool
    show_grades: bool = False


DENY = Decision(False, False)


def authorize(
    principal,
    action: str,
    course_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
) -> Decision:
    """Decide whether ``principal`` may perform ``action``.

    ``show_grades`` is only meaningful for VIEW_STUDENT_SCHEDULE. A missing
    course surfaces as NotFoundError from verify_teacher.
    """
    if action == LOGIN:
        return Decision(True)

    if principal is None or not principal.signed_in:
        return DENY

    role = principal.role

    if role == ADMINISTRATOR:
        return Decision(True, True)

    if action == VIEW_HOME:
        return Decision(True)

    if action in ADMIN_ONLY:
        return DENY

    if action in COURSE_MUTATIONS:
        if role != TEACHER or course_id is None:
            return DENY
        return Decision(repository.verify_teacher(course_id, principal.user_id))

    if action == VIEW_TEACHER_SCHEDULE:
        return Decision(role == TEACHER)

    if action == VIEW_STUDENT_SCHEDULE:
        if role == TEACHER:
            return Decision(True, False)
        if role == STUDENT and target_user_id is not None and principal.user_id == target_user_id:
            return Decision(True, True)
        return DENY

    logger.warning(f"Unknown action requested: {action}")
    return DENY


def require(
    principal,
    action: str,
    course_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
) -> Decision:
    """Like authorize(), but raise UnauthorizedError on deny."""
    decision = authorize(principal, action, course_id, target_user_id)
    if not decision.allowed:
        who = principal.username if principal is not None else None
        logger.warning(f"Denied {action} for {who or 'anonymous'} (course={course_id}, user={target_user_id})")
        raise UnauthorizedError("You do not have permission to do this")
    return decision
