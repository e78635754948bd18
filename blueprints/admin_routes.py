import logging
from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from utils import policy, repository, validators
from utils.auth_utils import permission_required
from utils.errors import ValidationFailedError
from utils.pagination import paginate

logger = logging.getLogger(__name__)


admin_bp = Blueprint("admin", __name__)


def _render_add_course(**form):
    return render_template(
        "add_course.html",
        current_teachers=repository.get_teacher_list(),
        **form,
    )


# Route: GET "/admin"
# Used by: "/" redirect for administrators; pagination links on admin_course_list.html
# Purpose: Paged list of every course with its teacher and enrollment count.
@admin_bp.route("/admin", endpoint="course_list")
@permission_required(policy.VIEW_CLASS_LIST)
def course_list():
    limit = current_app.config["ENTRIES_PER_PAGE"]
    pagination = paginate(
        request.args.get("page", 1), limit, repository.get_classes_count()
    )
    class_list = repository.get_class_list(pagination["limit"], pagination["offset"])

    logger.info(f"Admin course list accessed by {session.get('username')}")
    return render_template(
        "admin_course_list.html", pagination=pagination, class_list=class_list
    )


# Route: GET "/admin/course/<course_id>"
# Used by: admin_course_list.html rows; redirects after admin roster edits
# Purpose: Course header plus the paged roster with grade/drop controls.
@admin_bp.route("/admin/course/<int:course_id>", endpoint="course_roster")
@permission_required(policy.VIEW_COURSE_ROSTER)
def course_roster(course_id):
    class_info = repository.get_class_info(course_id)

    limit = current_app.config["ENTRIES_PER_PAGE"]
    pagination = paginate(
        request.args.get("page", 1), limit, repository.get_roster_count_admin(course_id)
    )
    roster = repository.get_class_roster_admin(
        course_id, pagination["limit"], pagination["offset"]
    )

    return render_template(
        "admin_class_roster.html",
        course_id=course_id,
        class_info=class_info,
        pagination=pagination,
        roster=roster,
    )


# Route: GET "/admin/add-course"
# Used by: link on admin_course_list.html
# Purpose: Form to create a course for an existing or a new teacher.
@admin_bp.route("/admin/add-course", methods=["GET"], endpoint="add_course")
@permission_required(policy.ADD_COURSE)
def add_course():
    return _render_add_course()


# Route: POST "/admin/add-course"
# Used by: add_course.html form
# Purpose: Create the course (and the teacher account when none was selected).
@admin_bp.route("/admin/add-course", methods=["POST"], endpoint="add_course_post")
@permission_required(policy.ADD_COURSE)
def add_course_post():
    current_teacher = request.form.get("current_teacher", "").strip()
    raw_username = request.form.get("username", "").strip()
    raw_full_name = request.form.get("full_name", "").strip()

    form = {
        "course_name": request.form.get("course_name", "").strip(),
        "period": request.form.get("period", ""),
        "current_teacher": current_teacher,
        "username": raw_username,
        "full_name": raw_full_name,
    }

    (course_name, period), errors = validators.collect(
        validators.validate_course_name(form["course_name"]),
        validators.validate_period(form["period"]),
    )

    if not current_teacher and not (raw_username and raw_full_name):
        errors.insert(0, "Please create a new user or select an existing teacher")
    elif current_teacher:
        teacher_id = validators.parse_int(current_teacher)
        if teacher_id is None:
            errors.append("Please select an existing teacher")
    else:
        (username, full_name, password), new_user_errors = validators.collect(
            validators.validate_username(raw_username),
            validators.validate_full_name(raw_full_name),
            validators.validate_password(
                request.form.get("password"), request.form.get("confirm_password")
            ),
        )
        errors.extend(new_user_errors)

    if errors:
        for message in errors:
            flash(message, "error")
        return _render_add_course(**form)

    try:
        if current_teacher:
            if not repository.is_teacher_available(teacher_id, period):
                flash("That teacher is not available that period", "error")
                return _render_add_course(**form)
            new_course_id = repository.create_course(teacher_id, course_name, period)
        else:
            if repository.get_user_id(username) != repository.NO_SUCH_USER:
                flash("That username is already taken", "error")
                return _render_add_course(**form)
            new_course_id = repository.create_teacher_with_course(
                username, full_name, password, course_name, period
            )
    except ValidationFailedError as e:
        for message in e.messages:
            flash(message, "error")
        return _render_add_course(**form)

    logger.info(f"Course {new_course_id} ({course_name}) created by {session.get('username')}")
    flash("Course created", "success")
    return redirect(url_for("admin.course_roster", course_id=new_course_id))
