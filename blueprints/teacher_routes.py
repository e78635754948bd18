import logging
from flask import Blueprint, current_app, render_template, request

from utils import policy, repository
from utils.auth_utils import current_principal, permission_required
from utils.pagination import paginate

logger = logging.getLogger(__name__)

teacher_bp = Blueprint("teacher", __name__)


# Route: GET "/teacher"
# Used by: "/" redirect for teachers; period links on teacher_schedule.html
# Purpose: The teacher's schedule, or the paged roster for ?period=N.
@teacher_bp.route("/teacher", endpoint="schedule")
@permission_required(policy.VIEW_TEACHER_SCHEDULE)
def schedule():
    principal = current_principal()
    teacher_schedule = repository.get_teacher_schedule(principal.user_id)
    current_period = request.args.get("period", type=int)

    if not current_period:
        return render_template("teacher_schedule.html", teacher_schedule=teacher_schedule)

    course_id = repository.get_course_id(principal.user_id, current_period)
    class_info = repository.get_class_info(course_id)

    limit = current_app.config["ENTRIES_PER_PAGE"]
    pagination = paginate(
        request.args.get("page", 1),
        limit,
        repository.get_roster_count(principal.user_id, current_period),
    )
    roster = repository.get_class_roster(
        principal.user_id, current_period, pagination["limit"], pagination["offset"]
    )

    logger.info(f"Teacher {principal.username} viewed roster for period {current_period}")
    return render_template(
        "teacher_roster.html",
        course_id=course_id,
        class_info=class_info,
        current_period=current_period,
        roster=roster,
        pagination=pagination,
        teacher_schedule=teacher_schedule,
    )
