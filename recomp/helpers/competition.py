import math
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from recomp.helpers.time import parse_datetime

# Buffers around the official window (days)
PRE_CHALLENGE_BUFFER_DAYS = 30
POST_CHALLENGE_BUFFER_DAYS = 14

# Scans more than this many days before the start are kept for history only
HISTORICAL_THRESHOLD_DAYS = 90
WARNING_THRESHOLD_DAYS = 60


def competition_dates() -> tuple[datetime, datetime]:
    """(start, end) of the challenge as naive UTC datetimes, from app config."""
    start = parse_datetime(current_app.config["COMPETITION_START_DATE"])
    end = parse_datetime(current_app.config["COMPETITION_END_DATE"])
    return start, end


def classify_scan_date(scan_date: datetime, start: Optional[datetime] = None,
                       end: Optional[datetime] = None) -> dict:
    """
    Classify a scan date against the competition window.

    Returns:
      {
        "category": "historical" | "competition" | "post-challenge",
        "is_competition_eligible": bool,
        "warning_type": None | "historical" | "pre-challenge" | "post-challenge",
        "message": None | str,
      }
    """
    if start is None or end is None:
        start, end = competition_dates()

    window_start = start - timedelta(days=PRE_CHALLENGE_BUFFER_DAYS)
    window_end = end + timedelta(days=POST_CHALLENGE_BUFFER_DAYS)
    historical_cutoff = start - timedelta(days=HISTORICAL_THRESHOLD_DAYS)
    shown = scan_date.strftime("%d %b %Y")

    if scan_date < historical_cutoff:
        return {
            "category": "historical",
            "is_competition_eligible": False,
            "warning_type": "historical",
            "message": (
                f"This scan is from {shown} - more than {HISTORICAL_THRESHOLD_DAYS} days before the "
                "challenge start. It will be saved for historical tracking but won't affect your "
                "competition score."
            ),
        }

    if scan_date > window_end:
        return {
            "category": "post-challenge",
            "is_competition_eligible": False,
            "warning_type": "post-challenge",
            "message": (
                f"This scan is from {shown} - after the challenge ended. It will be saved for "
                "historical tracking but won't affect your competition score."
            ),
        }

    if scan_date < window_start:
        return {
            "category": "competition",
            "is_competition_eligible": True,
            "warning_type": "pre-challenge",
            "message": (
                f"This scan is from {shown} - before the official challenge window. It will be "
                "included in competition scoring but may not represent your challenge baseline."
            ),
        }

    return {
        "category": "competition",
        "is_competition_eligible": True,
        "warning_type": None,
        "message": None,
    }


def should_show_date_warning(scan_date: datetime, start: Optional[datetime] = None,
                             end: Optional[datetime] = None) -> bool:
    if start is None or end is None:
        start, end = competition_dates()
    warning_cutoff = start - timedelta(days=WARNING_THRESHOLD_DAYS)
    window_end = end + timedelta(days=POST_CHALLENGE_BUFFER_DAYS)
    return scan_date < warning_cutoff or scan_date > window_end


def competition_status(now: Optional[datetime] = None) -> dict:
    """not-started / active / ended, with day counts while it's running."""
    start, end = competition_dates()
    now = now or datetime.utcnow()
    day = 24 * 60 * 60

    if now < start:
        days_until = math.ceil((start - now).total_seconds() / day)
        return {
            "status": "not-started",
            "days_until_start": days_until,
            "message": f"Challenge starts in {days_until} days",
        }

    if now > end:
        return {"status": "ended", "message": "Challenge has ended"}

    days_elapsed = math.floor((now - start).total_seconds() / day)
    days_remaining = math.ceil((end - now).total_seconds() / day)
    return {
        "status": "active",
        "days_elapsed": days_elapsed,
        "days_remaining": days_remaining,
        "message": f"{days_remaining} days remaining",
    }
