import math
import os
import secrets
import sys

from flask import Blueprint, request, jsonify, g, send_file

from recomp.extensions import db
from recomp.models import User
from recomp.helpers.account import MIN_PASSWORD_LENGTH, admin_required, hash_password
from recomp.helpers.admin import sqlite_database_path
from recomp.helpers.email import normalize_email
from recomp.helpers.leaderboard_cache import invalidate_leaderboard_cache
from recomp.helpers.recalculate import recalculate_all_scores
from recomp.helpers.scans import (
    TARGET_RANGES,
    ScanValidationError,
    fix_all_baselines,
    parse_targets,
    remove_scan_image,
)

admin_bp = Blueprint("admin", __name__)

# Fields an admin may PATCH directly; password goes through reset-password
ADMIN_EDITABLE_FIELDS = {
    "username": str,
    "email": str,
    "name": str,
    "first_name": str,
    "last_name": str,
    "gender": str,
    "height": str,
    "starting_weight": float,
    "target_body_fat_percent": float,
    "target_lean_mass": float,
    "is_active": bool,
    "is_email_verified": bool,
}

# Changing these can change who is on the board or how they're scored
SCORING_FIELDS = {"gender", "is_active"}


def _error(message, status):
    return jsonify({"ok": False, "error": message}), status


@admin_bp.route("/api/admin/users")
@admin_required
def admin_list_users():
    users = User.query.order_by(User.created_at.asc(), User.id.asc()).all()
    out = []
    for u in users:
        row = u.to_dict()
        row["total_scans"] = len(u.scans)
        row["total_score"] = u.scoring.total_score if u.scoring else None
        out.append(row)
    return jsonify(out)


@admin_bp.route("/api/admin/users", methods=["POST"])
@admin_required
def admin_create_user():
    """
    Admin-created accounts skip email verification.
    """
    data = request.get_json(force=True, silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip() or None
    email = normalize_email(data.get("email")) or None

    if not username or not password:
        return _error("Username and password required", 400)
    if len(password) < MIN_PASSWORD_LENGTH:
        return _error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)

    if User.query.filter_by(username=username).first():
        return _error("Username already exists", 400)
    if email and User.query.filter_by(email=email).first():
        return _error("Email already exists", 400)

    user = User(
        username=username,
        email=email,
        name=name,
        password_hash=hash_password(password),
        is_active=True,
        is_email_verified=True,
    )
    db.session.add(user)
    db.session.commit()

    print(f"[ADMIN] {g.user.username} created user {user.id} ({username})", file=sys.stderr)
    return jsonify(user.to_dict()), 201


@admin_bp.route("/api/admin/users/<int:user_id>", methods=["PATCH"])
@admin_required
def admin_update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return _error("User not found", 404)

    data = request.get_json(force=True, silent=True) or {}

    updates = {}
    for key, kind in ADMIN_EDITABLE_FIELDS.items():
        if key not in data:
            continue
        raw = data[key]
        if raw is None or raw == "":
            if key in ("username", "is_active", "is_email_verified"):
                return _error(f"{key} cannot be empty", 400)
            updates[key] = None
            continue
        try:
            if kind is bool:
                if not isinstance(raw, bool):
                    raise ValueError
                updates[key] = raw
            elif key in TARGET_RANGES:
                updates[key] = parse_targets({key: raw})[key]
            elif kind is float:
                value = float(raw)
                if not math.isfinite(value) or value <= 0:
                    raise ValueError
                updates[key] = value
            else:
                updates[key] = str(raw).strip()
        except ScanValidationError as e:
            return _error(str(e), 400)
        except (TypeError, ValueError):
            return _error(f"Invalid {key}", 400)

    if "gender" in updates and updates["gender"] not in (None, "male", "female"):
        return _error("gender must be 'male' or 'female'", 400)
    if updates.get("email"):
        updates["email"] = normalize_email(updates["email"])

    for key, value in updates.items():
        setattr(user, key, value)
    db.session.commit()

    if SCORING_FIELDS & set(updates):
        recalculate_all_scores()
    else:
        invalidate_leaderboard_cache()

    return jsonify(user.to_dict())


@admin_bp.route("/api/admin/users/<int:user_id>", methods=["DELETE"])
@admin_required
def admin_delete_user(user_id):
    """
    Hard delete: scans and scoring rows go with the user.
    """
    if user_id == g.user.id:
        return _error("Cannot delete your own account", 400)

    user = db.session.get(User, user_id)
    if not user:
        return _error("User not found", 404)

    images = [s.scan_image_path for s in user.scans if s.scan_image_path]

    db.session.delete(user)
    db.session.commit()
    for image in images:
        remove_scan_image(image)
    print(f"[ADMIN] {g.user.username} deleted user {user_id}", file=sys.stderr)

    recalculate_all_scores()
    return "", 204


@admin_bp.route("/api/admin/users/<int:user_id>/reset-password", methods=["POST"])
@admin_required
def admin_reset_password(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return _error("User not found", 404)

    temp_password = secrets.token_urlsafe(8)
    user.password_hash = hash_password(temp_password)
    db.session.commit()

    return jsonify({
        "ok": True,
        "message": f"Password reset. Temporary password: {temp_password}",
        "temporary_password": temp_password,
    })


@admin_bp.route("/api/admin/recalculate", methods=["POST"])
@admin_required
def admin_recalculate():
    result = recalculate_all_scores()
    return jsonify({"ok": True, **result.to_dict()})


@admin_bp.route("/api/admin/fix-baselines", methods=["POST"])
@admin_required
def admin_fix_baselines():
    count = fix_all_baselines()
    result = recalculate_all_scores()
    return jsonify({"ok": True, "users": count, **result.to_dict()})


@admin_bp.route("/api/admin/database/download")
@admin_required
def admin_download_database():
    """
    Stream the SQLite file for backups. Not available on Postgres.
    """
    path = sqlite_database_path(db.engine)
    if not path:
        return _error("Database download is only available for SQLite file databases", 400)

    if not os.path.exists(path):
        return _error("Database file not found", 404)

    print(f"[ADMIN] {g.user.username} downloaded the database", file=sys.stderr)

    response = send_file(
        path,
        mimetype="application/x-sqlite3",
        as_attachment=True,
        download_name=os.path.basename(path),
        max_age=0,
    )
    response.headers["X-Database-Original-Path"] = path
    return response
