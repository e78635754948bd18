import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import session, flash, redirect, url_for, request, g

from utils import policy

logger = logging.getLogger(__name__)

SESSION_KEYS = ("signed_in", "user_id", "role", "full_name", "username")


@dataclass(frozen=True)
class Principal:
    """The authenticated identity and role making a request."""

    user_id: Optional[int]
    role: Optional[str]
    full_name: str = ""
    username: str = ""
    signed_in: bool = False

    @classmethod
    def anonymous(cls):
        return cls(user_id=None, role=None)


def current_principal() -> Principal:
    if not session.get("signed_in"):
        return Principal.anonymous()
    return Principal(
        user_id=session.get("user_id"),
        role=session.get("role"),
        full_name=session.get("full_name", ""),
        username=session.get("username", ""),
        signed_in=True,
    )


def sign_in(user_id: int, username: str, full_name: str, role: str):
    """Store the principal in the session after a successful login."""
    session["signed_in"] = True
    session["user_id"] = user_id
    session["username"] = username
    session["full_name"] = full_name
    session["role"] = role
    session.permanent = True


def sign_out():
    for key in SESSION_KEYS:
        session.pop(key, None)


def login_required(f):
    """Decorator to ensure a signed-in session exists before accessing a route.

    Anonymous requests remember where they were going and land on the login page.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get("signed_in"):
            if request.method == "GET":
                session["original_url"] = request.full_path.rstrip("?")
            flash("Please log in to access this page.", "error")
            return redirect(url_for("auth.login"))
        return f(*args, **kwargs)

    return decorated_function


def permission_required(action):
    """Decorator applying the authorization policy to a view.

    The view's ``course_id`` / ``user_id`` arguments identify the resource. The
    decision is left on ``g.decision`` for views that vary their output by it.
    """

    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            g.decision = policy.require(
                current_principal(),
                action,
                course_id=kwargs.get("course_id"),
                target_user_id=kwargs.get("user_id"),
            )
            return f(*args, **kwargs)

        return login_required(wrapper)

    return deco
