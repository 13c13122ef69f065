import sys
from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from recomp.extensions import db
from recomp.models import User, DexaScan, ScoringData, ScoringRangeRecord
from recomp.helpers.scoring import (
    RawScores,
    ScoreSkipped,
    ScoringRange,
    calculate_raw_scores,
    calculate_scoring_range,
    score_breakdown,
)
from recomp.helpers.leaderboard_cache import invalidate_leaderboard_cache


@dataclass
class RecalculationResult:
    scored: list = field(default_factory=list)       # user ids
    skipped: dict = field(default_factory=dict)      # user id -> reason
    scoring_range: ScoringRange = field(default_factory=ScoringRange)

    def to_dict(self) -> dict:
        return {
            "scored": len(self.scored),
            "skipped": {str(k): v for k, v in self.skipped.items()},
            "range": self.scoring_range.to_dict(),
        }


def select_scoring_scans(user: User) -> tuple[DexaScan, DexaScan]:
    """
    Pick (baseline, latest) for scoring.

    - baseline: the scan flagged is_baseline (earliest competition scan)
    - latest: the scan flagged is_final if there is one, otherwise the most
      recent competition-eligible scan; either way it must be dated after
      the baseline

    Historical / post-challenge scans never count.
    """
    eligible = [s for s in user.scans if s.is_competition_eligible]

    if len(eligible) < 2:
        raise ScoreSkipped(f"needs at least 2 competition scans (has {len(eligible)})")

    baseline = next((s for s in eligible if s.is_baseline), None)
    if baseline is None:
        raise ScoreSkipped("no baseline scan")

    later = [s for s in eligible if s.id != baseline.id and s.scan_date > baseline.scan_date]
    if not later:
        raise ScoreSkipped("no competition scan dated after the baseline")

    final = next((s for s in later if s.is_final), None)
    if final is not None:
        return baseline, final

    return baseline, max(later, key=lambda s: (s.scan_date, s.id))


def raw_scores_for_user(user: User) -> RawScores:
    baseline, latest = select_scoring_scans(user)
    return calculate_raw_scores(baseline, latest, user.gender)


def _save_scoring_range(rng: ScoringRange, now: datetime) -> None:
    competition_id = current_app.config["COMPETITION_ID"]
    row = ScoringRangeRecord.query.filter_by(competition_id=competition_id).first()
    if not row:
        row = ScoringRangeRecord(competition_id=competition_id)
        db.session.add(row)

    row.min_fat_loss = rng.min_fat_loss
    row.max_fat_loss = rng.max_fat_loss
    row.min_muscle_gain = rng.min_muscle_gain
    row.max_muscle_gain = rng.max_muscle_gain
    row.participant_count = rng.participant_count
    row.last_updated = now


def load_scoring_range():
    """Range from the last pass, or None if nothing has been scored yet."""
    row = ScoringRangeRecord.query.filter_by(
        competition_id=current_app.config["COMPETITION_ID"]
    ).first()
    if not row or row.participant_count == 0:
        return None
    return ScoringRange(
        min_fat_loss=row.min_fat_loss,
        max_fat_loss=row.max_fat_loss,
        min_muscle_gain=row.min_muscle_gain,
        max_muscle_gain=row.max_muscle_gain,
        participant_count=row.participant_count,
    )


def recalculate_all_scores() -> RecalculationResult:
    """
    Recompute every contestant's score.

    Two passes, because normalization is relative to the whole field:
      1) raw fat-loss / muscle-gain scores per active user
      2) min-max normalize each component against the population, then
         upsert ScoringData

    A user with unusable data is logged and skipped (and any stale score
    row is removed); one bad user never aborts the batch. Everything is
    committed once at the end; a DB error rolls back and re-raises.
    """
    result = RecalculationResult()
    raws: dict[int, RawScores] = {}

    try:
        users = User.query.filter(User.is_active == True).order_by(User.id.asc()).all()

        # --- pass 1: raw scores ---
        for user in users:
            try:
                raws[user.id] = raw_scores_for_user(user)
            except ScoreSkipped as e:
                result.skipped[user.id] = str(e)
                print(f"[RECALC] Skipping user {user.id} ({user.username}): {e}", file=sys.stderr)
                if user.scoring is not None:
                    db.session.delete(user.scoring)

        # inactive users keep nothing on the board
        stale = (
            ScoringData.query
            .join(User, User.id == ScoringData.user_id)
            .filter(User.is_active == False)
            .all()
        )
        for row in stale:
            db.session.delete(row)

        # --- pass 2: normalize against the field ---
        rng = calculate_scoring_range(raws.values())
        result.scoring_range = rng
        now = datetime.utcnow()

        existing = {
            row.user_id: row
            for row in ScoringData.query.filter(ScoringData.user_id.in_(list(raws.keys()))).all()
        } if raws else {}

        for user_id, raw in raws.items():
            scores = score_breakdown(raw, rng)

            row = existing.get(user_id)
            if not row:
                row = ScoringData(user_id=user_id)
                db.session.add(row)

            row.fat_loss_raw = raw.fat_loss_raw
            row.muscle_gain_raw = raw.muscle_gain_raw
            row.fat_loss_score = scores["fat_loss_score"]
            row.muscle_gain_score = scores["muscle_gain_score"]
            row.total_score = scores["total_score"]
            row.last_calculated = now

            result.scored.append(user_id)

        _save_scoring_range(rng, now)
        db.session.commit()

    except SQLAlchemyError as e:
        db.session.rollback()
        print(f"[RECALC] Aborted, database error: {e}", file=sys.stderr)
        raise

    invalidate_leaderboard_cache()

    print(
        f"[RECALC] Scored {len(result.scored)} users, skipped {len(result.skipped)}. "
        f"FLS [{rng.min_fat_loss:.2f} - {rng.max_fat_loss:.2f}], "
        f"MGS [{rng.min_muscle_gain:.2f} - {rng.max_muscle_gain:.2f}]",
        file=sys.stderr,
    )
    return result
