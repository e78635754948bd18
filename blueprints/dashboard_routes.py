import logging
from flask import Blueprint, redirect, request, url_for

from utils import policy
from utils.auth_utils import current_principal, permission_required
from utils.errors import UnauthorizedError

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__)


# Route: GET "/"
# Used by: post-login redirect; header link in base.html; 404/405 fallback
# Purpose: Send each role to its landing page.
@dashboard_bp.route("/", endpoint="home")
@permission_required(policy.VIEW_HOME)
def home():
    principal = current_principal()
    page = request.args.get("page", 1, type=int)

    if principal.role == policy.TEACHER:
        return redirect(url_for("teacher.schedule"))
    if principal.role == policy.ADMINISTRATOR:
        return redirect(url_for("admin.course_list", page=page))
    if principal.role == policy.STUDENT:
        return redirect(url_for("student.schedule", user_id=principal.user_id))

    logger.error(f"Session for {principal.username} carries an invalid role: {principal.role}")
    raise UnauthorizedError("Invalid role.")
