from functools import wraps
from typing import Optional

from flask import session, g, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from recomp.extensions import db
from recomp.models import User
from recomp.helpers.admin import is_admin_user

MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3

def hash_password(password: str) -> str:
    return generate_password_hash(password)

def check_password(user: User, password: str) -> bool:
    if not user or not user.password_hash:
        return False
    return check_password_hash(user.password_hash, password or "")

def get_user_for_session() -> Optional[User]:
    user_id = session.get("user_id")
    if not user_id:
        return None

    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        # stale cookie (deleted / deactivated user)
        session.pop("user_id", None)
        return None
    return user

def login_user(user: User) -> None:
    session.clear()
    session.permanent = True
    session["user_id"] = user.id

def logout_user() -> None:
    session.clear()

def login_required(view):
    """
    Resolve the session user into g.user, or 401.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = get_user_for_session()
        if not user:
            return jsonify({"ok": False, "error": "Authentication required"}), 401
        g.user = user
        return view(*args, **kwargs)
    return wrapped

def admin_required(view):
    """
    Like login_required, plus the username must be in ADMIN_USERNAMES.
    """
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = get_user_for_session()
        if not user:
            return jsonify({"ok": False, "error": "Authentication required"}), 401
        if not is_admin_user(user):
            return jsonify({"ok": False, "error": "Admin access required"}), 403
        g.user = user
        return view(*args, **kwargs)
    return wrapped
