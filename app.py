import logging
import os
import sys
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, redirect, render_template, request, url_for
from flask_wtf.csrf import CSRFProtect, generate_csrf

from utils.auth_utils import current_principal
from utils.db_conn import check_database_connectivity
from utils.errors import DataAccessError, NotFoundError, UnauthorizedError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

# Create Flask app
app = Flask(__name__)

app.secret_key = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
app.config["ENTRIES_PER_PAGE"] = int(os.getenv("ENTRIES_PER_PAGE", "5"))
app.config["SESSION_COOKIE_NAME"] = "graham-sis-session-id"
app.config["SESSION_COOKIE_HTTPONLY"] = True
app.config["SESSION_COOKIE_SECURE"] = os.getenv("SESSION_COOKIE_SECURE", "False").lower() == "true"
app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=31)

# Ensure csrf_token() helper is available in all templates
app.jinja_env.globals.update(csrf_token=generate_csrf)

# Initialize CSRF protection
csrf = CSRFProtect(app)


@app.context_processor
def inject_principal():
    return {"principal": current_principal()}


from blueprints.auth_routes import auth_bp
from blueprints.dashboard_routes import dashboard_bp
from blueprints.admin_routes import admin_bp
from blueprints.teacher_routes import teacher_bp
from blueprints.student_routes import student_bp
from blueprints.course_routes import course_bp

app.register_blueprint(auth_bp)
app.register_blueprint(dashboard_bp)
app.register_blueprint(admin_bp)
app.register_blueprint(teacher_bp)
app.register_blueprint(student_bp)
app.register_blueprint(course_bp)


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    logger.warning(f"{request.method} {request.path}: {e}")
    return render_template("error.html", message=str(e)), 404


@app.errorhandler(UnauthorizedError)
def handle_unauthorized(e):
    logger.warning(f"{request.method} {request.path}: {e}")
    return render_template("error.html", message=str(e)), 403


@app.errorhandler(DataAccessError)
def handle_data_access_error(e):
    logger.error(f"{request.method} {request.path}: {e}")
    return render_template("error.html", message="An error occurred. Please try again."), 500


# Unknown paths go back to the home page, which sends anonymous users to login.
@app.errorhandler(404)
@app.errorhandler(405)
def page_not_found(e):
    return redirect(url_for("dashboard.home"))


def run_startup_checks_or_exit():
    """Check database connectivity and exit the process on failure."""
    logger.info("Running startup checks...")

    ok_db, db_msg = check_database_connectivity()
    if ok_db:
        logger.info(f"Database check: {db_msg}")
        return

    logger.error(f"Database check: {db_msg}")
    logger.error("Startup checks failed. Aborting launch.")
    sys.exit(1)


if __name__ == "__main__":
    logger.info("Application startup initiated")
    run_startup_checks_or_exit()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "5000"))
    logger.info(f"Graham SIS is listening on port {port} of {host}")
    app.run(host=host, port=port, debug=os.getenv("FLASK_DEBUG", "False").lower() == "true")
