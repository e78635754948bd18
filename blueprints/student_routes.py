import logging
from flask import Blueprint, g, render_template

from utils import policy, repository
from utils.auth_utils import permission_required

logger = logging.getLogger(__name__)

student_bp = Blueprint("student", __name__)


# Route: GET "/student/<user_id>"
# Used by: "/" redirect for students; student links on roster pages
# Purpose: A student's schedule. Teachers see it without grades; students only see their own.
@student_bp.route("/student/<int:user_id>", endpoint="schedule")
@permission_required(policy.VIEW_STUDENT_SCHEDULE)
def schedule(user_id):
    profile = repository.get_student_profile(user_id)
    classes = repository.get_student_classes(user_id)

    return render_template(
        "student_schedule.html",
        schedule=classes,
        student_name=profile["name"],
        student_grade_level=profile["grade_level"],
        show_grades=g.decision.show_grades,
    )
