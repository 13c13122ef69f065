import sys
from datetime import datetime, timedelta

from flask import Blueprint, request, jsonify, current_app, g

from recomp.extensions import db
from recomp.models import User
from recomp.helpers.account import (
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
    check_password,
    get_user_for_session,
    hash_password,
    login_required,
    login_user,
    logout_user,
)
from recomp.helpers.admin import is_admin_user
from recomp.helpers.email import normalize_email, send_verification_email, send_password_reset_email
from recomp.helpers.recalculate import recalculate_all_scores
from recomp.helpers.url import make_token, hash_token

VERIFICATION_TTL = timedelta(hours=24)
RESET_TTL = timedelta(hours=1)

# Same answer whether or not the email exists
FORGOT_PASSWORD_MESSAGE = "If that email exists, we've sent a password reset link"

auth_bp = Blueprint("auth", __name__)

def _issue_verification_token(user: User) -> str:
    token = make_token()
    user.email_verification_token = hash_token(token)
    user.email_verification_expires = datetime.utcnow() + VERIFICATION_TTL
    return token

def _user_payload(user: User) -> dict:
    out = user.to_dict()
    out["is_admin"] = is_admin_user(user)
    return out

@auth_bp.route("/api/register", methods=["POST"])
def register():
    """
    Create an account and email a verification link.

    Payload: {"username": "...", "email": "...", "password": "..."}

    In development, if the email can't be sent the account is verified
    straight away so local testing isn't blocked.
    """
    data = request.get_json(force=True, silent=True) or {}

    username = (data.get("username") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    if len(username) < MIN_USERNAME_LENGTH:
        return jsonify({"ok": False, "error": f"Username must be at least {MIN_USERNAME_LENGTH} characters"}), 400
    if not email or "@" not in email:
        return jsonify({"ok": False, "error": "A valid email is required"}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"ok": False, "error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    if User.query.filter((User.username == username) | (User.email == email)).first():
        return jsonify({"ok": False, "error": "User already exists"}), 400

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_email_verified=False,
    )
    token = _issue_verification_token(user)
    db.session.add(user)
    db.session.commit()

    sent = send_verification_email(email, token)
    if not sent:
        print(f"[AUTH] Verification email failed for user {user.id}", file=sys.stderr)
        if current_app.config.get("ENVIRONMENT") == "development":
            user.is_email_verified = True
            user.email_verification_token = None
            user.email_verification_expires = None
            db.session.commit()
            return jsonify({
                "ok": True,
                "message": "Account created and automatically verified (development mode). You can now log in.",
                "requires_verification": False,
            }), 201

    return jsonify({
        "ok": True,
        "message": "Account created successfully. Please check your email to verify your account.",
        "requires_verification": True,
    }), 201

@auth_bp.route("/api/login", methods=["POST"])
def login():
    """
    Payload: {"username": "...", "password": "..."} (email works as the username too)
    """
    data = request.get_json(force=True, silent=True) or {}

    identifier = (data.get("username") or data.get("email") or "").strip()
    password = data.get("password") or ""

    if not identifier or not password:
        return jsonify({"ok": False, "error": "Username and password are required"}), 400

    user = User.query.filter_by(username=identifier).first()
    if not user:
        user = User.query.filter_by(email=normalize_email(identifier)).first()

    if not user or not check_password(user, password):
        return jsonify({"ok": False, "error": "Invalid username or password"}), 401

    if not user.is_active:
        return jsonify({"ok": False, "error": "This account has been deactivated"}), 401

    if not user.is_email_verified:
        return jsonify({
            "ok": False,
            "error": "Please verify your email address before logging in",
            "requires_verification": True,
        }), 401

    login_user(user)
    print(f"[AUTH] User {user.id} logged in", file=sys.stderr)
    return jsonify(_user_payload(user))

@auth_bp.route("/api/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"ok": True, "message": "Logged out successfully"})

@auth_bp.route("/api/user")
def current_user():
    user = get_user_for_session()
    if not user:
        return jsonify({"ok": False, "error": "Not authenticated"}), 401
    return jsonify(_user_payload(user))

@auth_bp.route("/api/user", methods=["DELETE"])
@login_required
def deactivate_current_user():
    """
    Soft delete: scans are kept, but the user drops off the board and
    can't log in again.
    """
    g.user.is_active = False
    db.session.commit()
    logout_user()

    recalculate_all_scores()
    return jsonify({"ok": True})

@auth_bp.route("/api/verify-email", methods=["POST"])
def verify_email():
    data = request.get_json(force=True, silent=True) or {}
    token = (data.get("token") or "").strip()
    if not token:
        return jsonify({"ok": False, "error": "Missing token"}), 400

    user = User.query.filter_by(email_verification_token=hash_token(token)).first()
    if (
        not user
        or not user.email_verification_expires
        or user.email_verification_expires < datetime.utcnow()
    ):
        return jsonify({"ok": False, "error": "Invalid or expired verification token"}), 400

    user.is_email_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None
    db.session.commit()

    return jsonify({"ok": True, "message": "Email verified successfully"})

@auth_bp.route("/api/resend-verification", methods=["POST"])
def resend_verification():
    data = request.get_json(force=True, silent=True) or {}
    email = normalize_email(data.get("email"))

    user = User.query.filter_by(email=email).first() if email else None
    if not user:
        return jsonify({"ok": False, "error": "User not found"}), 404

    if user.is_email_verified:
        return jsonify({"ok": False, "error": "Email is already verified"}), 400

    token = _issue_verification_token(user)
    db.session.commit()

    if not send_verification_email(user.email, token):
        return jsonify({"ok": False, "error": "Failed to send verification email"}), 500

    return jsonify({"ok": True, "message": "Verification email sent"})

@auth_bp.route("/api/forgot-password", methods=["POST"])
def forgot_password():
    data = request.get_json(force=True, silent=True) or {}
    email = normalize_email(data.get("email"))

    user = User.query.filter_by(email=email).first() if email else None
    if not user:
        return jsonify({"ok": True, "message": FORGOT_PASSWORD_MESSAGE})

    token = make_token()
    user.password_reset_token = hash_token(token)
    user.password_reset_expires = datetime.utcnow() + RESET_TTL
    db.session.commit()

    if not send_password_reset_email(user.email, token):
        print(f"[AUTH] Password reset email failed for user {user.id}", file=sys.stderr)

    return jsonify({"ok": True, "message": FORGOT_PASSWORD_MESSAGE})

@auth_bp.route("/api/reset-password", methods=["POST"])
def reset_password():
    data = request.get_json(force=True, silent=True) or {}
    token = (data.get("token") or "").strip()
    password = data.get("password") or ""

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"ok": False, "error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    user = User.query.filter_by(password_reset_token=hash_token(token)).first() if token else None
    if not user or not user.password_reset_expires or user.password_reset_expires < datetime.utcnow():
        return jsonify({"ok": False, "error": "Invalid or expired reset token"}), 400

    user.password_hash = hash_password(password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.session.commit()

    return jsonify({"ok": True, "message": "Password reset successfully"})
