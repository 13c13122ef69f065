import math
import os
import sys
from typing import Optional

from flask import current_app

from recomp.extensions import db
from recomp.models import DexaScan
from recomp.helpers.competition import classify_scan_date
from recomp.helpers.recalculate import recalculate_all_scores
from recomp.helpers.time import parse_datetime


class ScanValidationError(ValueError):
    """Malformed scan data from a client."""


# field -> (minimum, allow equal to minimum, required)
_NUMERIC_FIELDS = {
    "body_fat_percent": (0.0, False, True),
    "lean_mass": (0.0, False, True),
    "total_weight": (0.0, False, True),
    "fat_mass": (0.0, True, False),
    "rmr": (0.0, True, False),
}

_TEXT_FIELDS = ("scan_name", "notes")

# target -> (low, high); high None means "greater than low"
TARGET_RANGES = {
    "target_body_fat_percent": (1.0, 50.0),
    "target_lean_mass": (0.0, None),
}


def _parse_number(data: dict, key: str):
    raw = data.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ScanValidationError(f"Invalid {key}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ScanValidationError(f"Invalid {key}")
    # NaN slips past every comparison below
    if not math.isfinite(value):
        raise ScanValidationError(f"Invalid {key}")
    return value


def parse_scan_payload(data: dict, partial: bool = False) -> dict:
    """
    Validate a scan payload from the API and return clean column values.

    - body_fat_percent in (0, 100]
    - lean_mass / total_weight > 0
    - fat_mass / rmr >= 0 (optional)
    - scan_date ISO string

    With partial=True (updates) only the keys present are validated.
    """
    data = data or {}
    out = {}

    for key, (minimum, inclusive, required) in _NUMERIC_FIELDS.items():
        if partial and key not in data:
            continue

        value = _parse_number(data, key)
        if value is None:
            if required:
                raise ScanValidationError(f"{key} is required")
            out[key] = None
            continue

        if value < minimum or (value == minimum and not inclusive):
            qualifier = "zero or more" if inclusive else "greater than zero"
            raise ScanValidationError(f"{key} must be {qualifier}")

        out[key] = value

    if "body_fat_percent" in out and out["body_fat_percent"] > 100:
        raise ScanValidationError("body_fat_percent must be at most 100")

    if not partial or "scan_date" in data:
        try:
            scan_date = parse_datetime(data.get("scan_date"))
        except (TypeError, ValueError):
            raise ScanValidationError("Invalid scan_date, expected ISO 8601")
        if scan_date is None:
            raise ScanValidationError("scan_date is required")
        out["scan_date"] = scan_date

    for key in _TEXT_FIELDS:
        if partial and key not in data:
            continue
        value = (data.get(key) or "").strip()
        out[key] = value or None

    if not partial or "is_final" in data:
        out["is_final"] = bool(data.get("is_final", False))

    return out


def parse_targets(data: dict) -> dict:
    """
    Validate personal target goals. Only targets given a value are returned.
    """
    data = data or {}
    out = {}
    for key, (low, high) in TARGET_RANGES.items():
        value = _parse_number(data, key)
        if value is None:
            continue
        if high is None:
            if value <= low:
                raise ScanValidationError(f"{key} must be greater than zero")
        elif not (low <= value <= high):
            raise ScanValidationError(f"{key} must be between {low:g} and {high:g}")
        out[key] = value
    return out


def remove_scan_image(filename: Optional[str]) -> None:
    """Delete a stored scan image from the upload folder, if it is still there."""
    if not filename:
        return
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], filename)
    if os.path.exists(path):
        os.remove(path)
        print(f"[SCAN] Removed image {filename}", file=sys.stderr)


# --- Baseline management ---

def manage_baseline(user_id: int) -> Optional[DexaScan]:
    """
    Keep exactly one baseline per user: the earliest competition-eligible scan.

    Caller commits.
    """
    scans = (
        DexaScan.query
        .filter(DexaScan.user_id == user_id)
        .order_by(DexaScan.scan_date.asc(), DexaScan.id.asc())
        .all()
    )
    eligible = [s for s in scans if s.is_competition_eligible]
    earliest = eligible[0] if eligible else None

    for s in scans:
        should_be_baseline = earliest is not None and s.id == earliest.id
        if should_be_baseline:
            s.is_baseline = True
            s.competition_role = "baseline"
        else:
            if s.is_baseline:
                print(f"[SCAN] Unmarking old baseline scan {s.id} for user {user_id}", file=sys.stderr)
            s.is_baseline = False
            if s.is_final:
                s.competition_role = "final"
            elif s.is_competition_eligible:
                s.competition_role = "progress"
            else:
                s.competition_role = None

    return earliest


def fix_all_baselines() -> int:
    """Re-run baseline management for every user with scans. Returns user count."""
    user_ids = [row[0] for row in db.session.query(DexaScan.user_id).distinct().all()]
    print(f"[SCAN] Fixing baseline scans for {len(user_ids)} users", file=sys.stderr)

    for user_id in user_ids:
        manage_baseline(user_id)

    db.session.commit()
    return len(user_ids)


def _apply_classification(scan: DexaScan) -> dict:
    classification = classify_scan_date(scan.scan_date)
    scan.is_competition_eligible = classification["is_competition_eligible"]
    scan.scan_category = classification["category"]
    return classification


def _clear_other_finals(user_id: int, keep_id: Optional[int]) -> None:
    q = DexaScan.query.filter(DexaScan.user_id == user_id, DexaScan.is_final == True)
    if keep_id is not None:
        q = q.filter(DexaScan.id != keep_id)
    for s in q.all():
        s.is_final = False


# --- Writes (each one triggers a full recalculation) ---

def create_scan(user_id: int, values: dict) -> tuple[DexaScan, dict]:
    """Insert a validated scan. Returns (scan, date classification)."""
    scan = DexaScan(user_id=user_id, **values)
    classification = _apply_classification(scan)

    db.session.add(scan)
    db.session.flush()

    if scan.is_final:
        _clear_other_finals(user_id, scan.id)

    manage_baseline(user_id)
    db.session.commit()

    print(
        f"[SCAN] Created scan {scan.id} for user {user_id} on {scan.scan_date:%Y-%m-%d} "
        f"({scan.scan_category}, eligible={scan.is_competition_eligible})",
        file=sys.stderr,
    )

    recalculate_all_scores()
    return scan, classification


def update_scan(scan: DexaScan, values: dict) -> tuple[DexaScan, Optional[dict]]:
    classification = None
    for key, value in values.items():
        setattr(scan, key, value)

    if "scan_date" in values:
        classification = _apply_classification(scan)

    if scan.is_final:
        _clear_other_finals(scan.user_id, scan.id)

    manage_baseline(scan.user_id)
    db.session.commit()

    print(f"[SCAN] Updated scan {scan.id} for user {scan.user_id}", file=sys.stderr)

    recalculate_all_scores()
    return scan, classification


def delete_scan(scan: DexaScan) -> None:
    user_id = scan.user_id
    scan_id = scan.id
    image = scan.scan_image_path

    db.session.delete(scan)
    db.session.flush()

    manage_baseline(user_id)
    db.session.commit()
    remove_scan_image(image)

    print(f"[SCAN] Deleted scan {scan_id} for user {user_id}", file=sys.stderr)

    recalculate_all_scores()
