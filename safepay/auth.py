"""Login gate for the dashboard.

There are no accounts or passwords: a visitor enters a name and an email
address, and the trimmed name becomes the session user that scopes the
transaction history.
"""

from __future__ import annotations

import re
from functools import wraps
from typing import Optional

from flask import jsonify, redirect, request, session, url_for


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 3

NAME_ERROR = "Please enter your full name (minimum 3 characters)."
EMAIL_ERROR = "Please enter a valid email address."


def validate_login(name: Optional[str], email: Optional[str]) -> Optional[str]:
    """Return an error message for invalid credentials, or None when they pass."""
    if len((name or "").strip()) < MIN_NAME_LENGTH:
        return NAME_ERROR
    if not EMAIL_PATTERN.fullmatch(email or ""):
        return EMAIL_ERROR
    return None


def current_user() -> Optional[str]:
    return session.get("user")


def login_user(name: str, email: str) -> str:
    """Start a fresh session for `name` and return the stored display name."""
    session.clear()
    session["user"] = name.strip()
    session["email"] = email.strip()
    return session["user"]


def logout_user() -> None:
    session.clear()


def login_required(view):
    """Redirect anonymous visitors to the login page (401 for JSON endpoints)."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            if request.path.startswith("/api/"):
                return jsonify(error="Authentication required."), 401
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapped
