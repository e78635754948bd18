import logging
from flask import (
    Blueprint,
    render_template,
    request,
    redirect,
    url_for,
    flash,
    session,
)

from utils import repository
from utils.auth_utils import sign_in, sign_out

logger = logging.getLogger(__name__)


# Blueprint: auth (no url_prefix to preserve original paths)
auth_bp = Blueprint("auth", __name__)


def _safe_redirect_target(target):
    """Only follow local absolute paths after login."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/"
    return target


# Route: GET "/users/login"
# Used by: login.html; login_required redirects here for anonymous requests
# Purpose: Show the login form, remembering where the user was headed.
@auth_bp.route("/users/login", methods=["GET"], endpoint="login")
def login():
    original_url = session.pop("original_url", None) or "/"
    logger.info("Login page accessed")
    return render_template("login.html", original_url=original_url)


# Route: POST "/users/login"
# Used by: login.html form
# Purpose: Authenticate, store the principal in the session, return to the original URL.
@auth_bp.route("/users/login", methods=["POST"], endpoint="login_post")
def login_post():
    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")
    original_url = _safe_redirect_target(request.form.get("original_url"))

    logger.info(f"Login attempt for username: {username}")

    if not username or not password:
        flash("Please enter both username and password.", "error")
        return render_template("login.html", username=username, original_url=original_url)

    valid_login, user_id = repository.authenticate(username, password)

    if not valid_login:
        logger.warning(f"Login failed for username: {username}")
        flash("Invalid credentials", "error")
        return render_template("login.html", username=username, original_url=original_url)

    full_name = repository.get_full_name(username)
    role = repository.get_role(user_id)

    sign_in(user_id, username, full_name, role)

    logger.info(f"User {username} ({role}) logged in successfully")
    flash("You are signed in.", "success")
    return redirect(original_url)


# Route: POST "/users/logout"
# Used by: logout button in base.html
# Purpose: Clear the session principal.
@auth_bp.route("/users/logout", methods=["POST"], endpoint="logout")
def logout():
    username = session.get("username")
    sign_out()
    logger.info(f"User {username} logged out")
    return redirect(url_for("dashboard.home"))
