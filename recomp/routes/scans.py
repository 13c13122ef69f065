import math
import os
import sys

from flask import Blueprint, request, jsonify, g, current_app

from recomp.extensions import db
from recomp.models import DexaScan, ScoringData
from recomp.helpers.account import login_required
from recomp.helpers.leaderboard import leaderboard_row_for
from recomp.helpers.leaderboard_cache import invalidate_leaderboard_cache
from recomp.helpers.recalculate import load_scoring_range
from recomp.helpers.scans import (
    ScanValidationError,
    create_scan,
    delete_scan,
    parse_scan_payload,
    parse_targets,
    remove_scan_image,
    update_scan,
)
from recomp.helpers.scoring import normalize_gender, project_scores, validate_target_goals
from recomp.helpers.url import allowed_upload, scan_image_filename

scans_bp = Blueprint("scans", __name__)

PROFILE_TEXT_FIELDS = ("name", "first_name", "last_name", "height")


def _error(message, status):
    return jsonify({"ok": False, "error": message}), status


def _parse_optional_positive(data: dict, key: str):
    """
    Returns (value, error). Missing / blank -> (None, None).
    """
    raw = data.get(key)
    if raw is None or raw == "":
        return None, None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None, f"Invalid {key}"
    if not math.isfinite(value):
        return None, f"Invalid {key}"
    if value <= 0:
        return None, f"{key} must be greater than zero"
    return value, None


def _apply_name_update(user, data: dict) -> None:
    # Upload forms send first/last name alongside the scan
    first = (data.get("first_name") or "").strip()
    last = (data.get("last_name") or "").strip()
    if first and last:
        user.first_name = first
        user.last_name = last
        user.name = f"{first} {last}"


def _own_scan_or_404(scan_id: int):
    scan = db.session.get(DexaScan, scan_id)
    if not scan or scan.user_id != g.user.id:
        return None
    return scan


@scans_bp.route("/api/users/register", methods=["POST"])
@login_required
def register_for_competition():
    """
    Competition sign-up: profile + targets + the baseline scan.

    Payload:
      {
        "name": "Jaron Parnala", "gender": "male", "height": "5'11\\"",
        "starting_weight": 180, "target_body_fat_percent": 15, "target_lean_mass": 140,
        "scan_date": "2025-08-04", "body_fat_percent": 25, "lean_mass": 130
      }
    """
    data = request.get_json(force=True, silent=True) or {}
    user = g.user

    gender = (data.get("gender") or "").strip().lower()
    if gender not in ("male", "female"):
        return _error("gender must be 'male' or 'female'", 400)

    starting_weight, err = _parse_optional_positive(data, "starting_weight")
    if err:
        return _error(err, 400)

    scan_data = dict(data)
    if scan_data.get("total_weight") in (None, ""):
        scan_data["total_weight"] = starting_weight

    try:
        targets = parse_targets(data)
        values = parse_scan_payload(scan_data)
    except ScanValidationError as e:
        return _error(str(e), 400)

    if values.get("fat_mass") is None:
        values["fat_mass"] = values["body_fat_percent"] / 100 * values["total_weight"]

    user.gender = gender
    for key in PROFILE_TEXT_FIELDS:
        if key in data:
            setattr(user, key, (data.get(key) or "").strip() or None)
    if starting_weight is not None:
        user.starting_weight = starting_weight
    for key, value in targets.items():
        setattr(user, key, value)
    db.session.commit()

    scan, classification = create_scan(user.id, values)

    return jsonify({"user": user.to_dict(), "scan": scan.to_dict(), "classification": classification})


@scans_bp.route("/api/user/targets", methods=["PUT"])
@login_required
def update_targets():
    data = request.get_json(force=True, silent=True) or {}

    try:
        updates = parse_targets(data)
    except ScanValidationError as e:
        return _error(str(e), 400)

    if not updates:
        return _error("At least one target goal must be provided", 400)

    for key, value in updates.items():
        setattr(g.user, key, value)
    db.session.commit()
    invalidate_leaderboard_cache()

    return jsonify(g.user.to_dict())


@scans_bp.route("/api/user/projection")
@login_required
def score_projection():
    """
    Projected score if the user hits their targets, normalized against the
    current field when one exists.
    """
    user = g.user
    if not user.target_body_fat_percent or not user.target_lean_mass:
        return _error("Set your target body fat and lean mass first", 400)

    baseline = DexaScan.query.filter_by(user_id=user.id, is_baseline=True).first()
    if not baseline:
        return _error("A baseline scan is required", 400)

    projection = project_scores(
        baseline,
        user.target_body_fat_percent,
        user.target_lean_mass,
        normalize_gender(user.gender),
        load_scoring_range(),
    )
    projection["warnings"] = validate_target_goals(
        baseline, user.target_body_fat_percent, user.target_lean_mass
    )
    return jsonify(projection)


@scans_bp.route("/api/users/<int:user_id>/scans")
@login_required
def list_user_scans(user_id):
    if user_id != g.user.id:
        return _error("Access denied", 403)

    scans = (
        DexaScan.query
        .filter_by(user_id=user_id)
        .order_by(DexaScan.scan_date.desc(), DexaScan.id.desc())
        .all()
    )
    return jsonify([s.to_dict() for s in scans])


@scans_bp.route("/api/scoring/<int:user_id>")
@login_required
def get_user_scoring(user_id):
    if user_id != g.user.id:
        return _error("Access denied", 403)

    scoring = ScoringData.query.filter_by(user_id=user_id).first()
    if not scoring:
        # one scan (or none) so far: nothing computed yet
        return jsonify({"user_id": user_id, "scored": False})

    out = scoring.to_dict()
    out["scored"] = True
    row = leaderboard_row_for(user_id)
    out["rank"] = row["rank"] if row else None
    return jsonify(out)


@scans_bp.route("/api/scans", methods=["POST"])
@login_required
def api_create_scan():
    data = request.get_json(force=True, silent=True) or {}

    try:
        values = parse_scan_payload(data)
    except ScanValidationError as e:
        return _error(str(e), 400)

    _apply_name_update(g.user, data)
    db.session.commit()

    scan, classification = create_scan(g.user.id, values)

    out = scan.to_dict()
    out["classification"] = classification
    return jsonify(out), 201


@scans_bp.route("/api/scans/<int:scan_id>", methods=["PUT"])
@login_required
def api_update_scan(scan_id):
    scan = _own_scan_or_404(scan_id)
    if not scan:
        return _error("Scan not found", 404)

    data = request.get_json(force=True, silent=True) or {}
    try:
        values = parse_scan_payload(data, partial=True)
    except ScanValidationError as e:
        return _error(str(e), 400)

    _apply_name_update(g.user, data)

    scan, classification = update_scan(scan, values)

    out = scan.to_dict()
    out["classification"] = classification
    return jsonify(out)


@scans_bp.route("/api/scans/<int:scan_id>", methods=["DELETE"])
@login_required
def api_delete_scan(scan_id):
    scan = _own_scan_or_404(scan_id)
    if not scan:
        return _error("Scan not found", 404)

    delete_scan(scan)
    return "", 204


@scans_bp.route("/api/scans/<int:scan_id>/image", methods=["POST"])
@login_required
def api_upload_scan_image(scan_id):
    """
    Multipart upload of the scan report (field name "file").
    """
    scan = _own_scan_or_404(scan_id)
    if not scan:
        return _error("Scan not found", 404)

    upload = request.files.get("file")
    if not upload or not upload.filename:
        return _error("No file uploaded", 400)

    if not allowed_upload(upload.filename):
        return _error("File type not allowed", 400)

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)

    filename = scan_image_filename(g.user.id, scan.id, upload.filename)
    upload.save(os.path.join(folder, filename))

    previous = scan.scan_image_path
    scan.scan_image_path = filename
    db.session.commit()
    remove_scan_image(previous)

    print(f"[SCAN] Stored image {filename} for scan {scan.id}", file=sys.stderr)
    return jsonify({"ok": True, "scan_image_path": filename})
