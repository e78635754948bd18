import logging
from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from utils import policy, repository, validators
from utils.auth_utils import current_principal, permission_required
from utils.errors import ValidationFailedError

logger = logging.getLogger(__name__)

course_bp = Blueprint("course", __name__)


def _back_to_roster(course_id, page=None):
    """Teachers return to their period view, administrators to the admin roster."""
    page = validators.parse_int(page) or 1
    if current_principal().role == policy.TEACHER:
        period = repository.get_class_info(course_id)["period"]
        return redirect(url_for("teacher.schedule", period=period, page=page))
    return redirect(url_for("admin.course_roster", course_id=course_id, page=page))


# Route: POST "/course/<course_id>/rename"
# Used by: rename form on the roster pages
# Purpose: Rename a course (owning teacher or administrator).
@course_bp.route("/course/<int:course_id>/rename", methods=["POST"], endpoint="rename")
@permission_required(policy.RENAME_COURSE)
def rename(course_id):
    new_name, errors = validators.validate_course_name(request.form.get("new_course_name"))

    if errors:
        for message in errors:
            flash(message, "error")
    else:
        repository.update_course_name(course_id, new_name)
        logger.info(f"Course {course_id} renamed to {new_name} by {current_principal().username}")
        flash("Course renamed", "success")

    return _back_to_roster(course_id)


# Route: GET "/course/<course_id>/add-student"
# Used by: "Add student" links on the roster pages
# Purpose: Form for a new student account enrolled straight into this course.
@course_bp.route("/course/<int:course_id>/add-student", methods=["GET"], endpoint="add_student")
@permission_required(policy.ADD_STUDENT)
def add_student(course_id):
    return render_template(
        "add_student.html",
        course_id=course_id,
        class_info=repository.get_class_info(course_id),
    )


# Route: POST "/course/<course_id>/add-student"
# Used by: add_student.html form
# Purpose: Create user + student profile + enrollment in one transaction.
@course_bp.route("/course/<int:course_id>/add-student", methods=["POST"], endpoint="add_student_post")
@permission_required(policy.ADD_STUDENT)
def add_student_post(course_id):
    form = {
        "username": request.form.get("username", "").strip(),
        "student_name": request.form.get("student_name", "").strip(),
        "grade_level": request.form.get("grade_level", ""),
        "grade": request.form.get("grade", ""),
    }

    (username, student_name, grade_level, grade, password), errors = validators.collect(
        validators.validate_username(form["username"]),
        validators.validate_full_name(form["student_name"]),
        validators.validate_grade_level(form["grade_level"]),
        validators.validate_grade(form["grade"]),
        validators.validate_password(
            request.form.get("password"), request.form.get("confirm_password")
        ),
    )

    if not errors and repository.get_user_id(username) != repository.NO_SUCH_USER:
        errors.append("That username is already taken")

    if not errors:
        try:
            repository.create_new_student(
                username, student_name, grade_level, grade, course_id, password
            )
        except ValidationFailedError as e:
            errors.extend(e.messages)

    if errors:
        for message in errors:
            flash(message, "error")
        return render_template(
            "add_student.html",
            course_id=course_id,
            class_info=repository.get_class_info(course_id),
            **form,
        )

    logger.info(f"{username} added to course {course_id} by {current_principal().username}")
    flash(f"{student_name} added to the class", "success")
    return _back_to_roster(course_id)


# Route: POST "/course/<course_id>/student/<student_id>/grade"
# Used by: grade inputs on the roster pages
# Purpose: Change one enrollment's grade.
@course_bp.route(
    "/course/<int:course_id>/student/<int:student_id>/grade",
    methods=["POST"],
    endpoint="update_grade",
)
@permission_required(policy.UPDATE_GRADE)
def update_grade(course_id, student_id):
    new_grade, errors = validators.validate_grade(request.form.get("grade"))

    if errors:
        for message in errors:
            flash(message, "error")
    elif repository.update_grade(course_id, student_id, new_grade):
        logger.info(
            f"Grade for student {student_id} in course {course_id} set to {new_grade} "
            f"by {current_principal().username}"
        )
        flash("Grade updated", "success")
    else:
        flash("An error occurred", "error")

    return _back_to_roster(course_id, request.form.get("page"))


# Route: POST "/course/<course_id>/student/<student_id>/drop"
# Used by: drop buttons on the roster pages
# Purpose: Remove one student from the course.
@course_bp.route(
    "/course/<int:course_id>/student/<int:student_id>/drop",
    methods=["POST"],
    endpoint="drop_student",
)
@permission_required(policy.DROP_STUDENT)
def drop_student(course_id, student_id):
    student_name = repository.get_student_name(student_id)

    if repository.drop_student(course_id, student_id):
        logger.info(f"Student {student_id} dropped from course {course_id} by {current_principal().username}")
        flash(f"You have dropped {student_name}", "success")
    else:
        flash("There was a problem", "error")

    return _back_to_roster(course_id, request.form.get("page"))


# Route: POST "/course/<course_id>/drop-course"
# Used by: drop-course button on the roster pages
# Purpose: Delete the course; its enrollments cascade.
@course_bp.route("/course/<int:course_id>/drop-course", methods=["POST"], endpoint="drop_course")
@permission_required(policy.DROP_COURSE)
def drop_course(course_id):
    if repository.drop_course(course_id):
        logger.info(f"Course {course_id} dropped by {current_principal().username}")
        flash("Course dropped", "success")
    else:
        flash("There was a problem", "error")

    return redirect(url_for("dashboard.home", page=request.form.get("page", 1)))
