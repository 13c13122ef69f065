import re
from typing import Optional

from recomp.extensions import db
from recomp.models import User, DexaScan, ScoringData
from recomp.helpers.leaderboard_cache import get_cached_rows, set_cached_rows
from recomp.helpers.scoring import percentage_change
from recomp.helpers.time import iso_or_none


def display_name_for(user: User, scans: list) -> str:
    """
    Short public name for the board.

    Priority: first_name -> first name parsed from the latest named scan
    ("Parnala, Jaron" -> "Jaron", "Jaron Parnala" -> "Jaron") -> first word
    of name -> email local part -> username.
    """
    if user.first_name and user.first_name.strip():
        return user.first_name.strip()

    named = [s for s in scans if s.scan_name and s.scan_name.strip()]
    if named:
        latest_named = max(named, key=lambda s: (s.created_at or s.scan_date, s.id))
        scan_name = latest_named.scan_name.strip()
        parts = [p for p in re.split(r"[,\s]+", scan_name) if p.strip()]
        if len(parts) > 1 and "," in scan_name:
            return parts[1]
        if parts:
            return parts[0]

    if user.name and user.name.strip():
        return user.name.strip().split()[0]
    if user.email:
        return user.email.split("@")[0]
    if user.username:
        return user.username
    return "Anonymous"


def target_progress(start: float, current: float, target: float, direction: str) -> float:
    """
    Percent of the way from start to a personal target (0-100).

    direction "decrease" for body fat, "increase" for lean mass.
    """
    if direction == "decrease":
        if start <= target:
            return 100.0
        total = start - target
        done = start - current
    else:
        if start >= target:
            return 100.0
        total = target - start
        done = current - start

    return max(0.0, min(100.0, (done / total) * 100))


def progress_percent(user: User, baseline: DexaScan, latest: DexaScan) -> float:
    if user.target_body_fat_percent and user.target_lean_mass:
        bf = target_progress(
            baseline.body_fat_percent, latest.body_fat_percent,
            user.target_body_fat_percent, "decrease",
        )
        lm = target_progress(
            baseline.lean_mass, latest.lean_mass,
            user.target_lean_mass, "increase",
        )
        return min(100.0, (bf + lm) / 2)

    # No targets set: 20% relative fat drop or 5% lean gain is "half way"
    bf_change = percentage_change(baseline.body_fat_percent, latest.body_fat_percent)
    lm_change = percentage_change(baseline.lean_mass, latest.lean_mass)
    fat_progress = max(0.0, -bf_change / 20) * 50
    muscle_progress = max(0.0, lm_change / 5) * 50
    return min(100.0, fat_progress + muscle_progress)


def _assign_positions(rows: list) -> None:
    """Ties on total score share a position."""
    pos = 0
    prev_key = None
    for row in rows:
        k = (row["total_score"],)
        if k != prev_key:
            pos += 1
        prev_key = k
        row["rank"] = pos


def build_leaderboard() -> list:
    """
    Ranked rows for every active contestant with at least one scan.

    Scores are read from ScoringData (written by the recalculation driver);
    nothing is computed here except the display-only changes/progress.
    Contestants without a score yet appear at the bottom with zeros and
    "scored": False.

    Order: total_score desc, fat_loss_score desc, display name, user id.
    """
    cached = get_cached_rows("leaderboard")
    if cached is not None:
        return cached

    users = (
        User.query
        .join(DexaScan, DexaScan.user_id == User.id)
        .filter(User.is_active == True)
        .distinct()
        .all()
    )

    if not users:
        set_cached_rows("leaderboard", [])
        return []

    user_ids = [u.id for u in users]

    all_scans = (
        DexaScan.query
        .filter(DexaScan.user_id.in_(user_ids))
        .order_by(DexaScan.scan_date.asc(), DexaScan.id.asc())
        .all()
    )
    scans_by_user = {}
    for s in all_scans:
        scans_by_user.setdefault(s.user_id, []).append(s)

    scoring_by_user = {
        sd.user_id: sd
        for sd in ScoringData.query.filter(ScoringData.user_id.in_(user_ids)).all()
    }

    rows = []
    for u in users:
        scans = scans_by_user.get(u.id, [])
        scoring = scoring_by_user.get(u.id)

        baseline = next((s for s in scans if s.is_baseline), None)
        latest = scans[-1] if scans else None

        body_fat_change = 0.0
        lean_mass_change = 0.0
        progress = 0.0
        if baseline and latest and baseline.id != latest.id:
            body_fat_change = percentage_change(baseline.body_fat_percent, latest.body_fat_percent)
            lean_mass_change = percentage_change(baseline.lean_mass, latest.lean_mass)
            progress = progress_percent(u, baseline, latest)

        rows.append(
            {
                "user_id": u.id,
                "display_name": display_name_for(u, scans),
                "gender": u.gender,
                "scored": scoring is not None,
                "total_score": scoring.total_score if scoring else 0.0,
                "fat_loss_score": scoring.fat_loss_score if scoring else 0.0,
                "muscle_gain_score": scoring.muscle_gain_score if scoring else 0.0,
                "body_fat_change": body_fat_change,
                "lean_mass_change": lean_mass_change,
                "progress_percent": progress,
                "total_scans": len(scans),
                "latest_scan_date": iso_or_none(latest.scan_date) if latest else None,
                "last_calculated": iso_or_none(scoring.last_calculated) if scoring else None,
            }
        )

    rows.sort(key=lambda r: (-r["total_score"], -r["fat_loss_score"], r["display_name"].lower(), r["user_id"]))
    _assign_positions(rows)

    set_cached_rows("leaderboard", rows)
    return rows


def build_contestants() -> list:
    """Active users with a baseline scan, earliest baseline first."""
    cached = get_cached_rows("contestants")
    if cached is not None:
        return cached

    pairs = (
        db.session.query(User, DexaScan)
        .join(DexaScan, DexaScan.user_id == User.id)
        .filter(User.is_active == True, DexaScan.is_baseline == True)
        .order_by(DexaScan.scan_date.asc(), User.id.asc())
        .all()
    )

    rows = [
        {
            "user": {
                "id": u.id,
                "name": u.name,
                "username": u.username,
                "target_body_fat_percent": u.target_body_fat_percent,
                "target_lean_mass": u.target_lean_mass,
            },
            "baseline_scan": {
                "body_fat_percent": s.body_fat_percent,
                "lean_mass": s.lean_mass,
                "scan_date": iso_or_none(s.scan_date),
            },
        }
        for u, s in pairs
    ]

    set_cached_rows("contestants", rows)
    return rows


def leaderboard_row_for(user_id: int) -> Optional[dict]:
    for row in build_leaderboard():
        if row["user_id"] == user_id:
            return row
    return None
