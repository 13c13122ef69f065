import math
from dataclasses import dataclass
from typing import Iterable, Optional

# --- Scoring constants ---

# Calibrated so a typical lean-mass gain lands near a typical fat-loss score
MUSCLE_GAIN_FACTOR = 17

GENDER_MULTIPLIER = {
    "male": 1.0,
    "female": 2.0,
}

# (upper bound of baseline body fat %, multiplier), checked in order
LEANNESS_BANDS = {
    "male": [(15, 1.4), (18, 1.3), (21, 1.2), (25, 1.1)],
    "female": [(20, 1.4), (23, 1.3), (26, 1.2), (30, 1.1)],
}

NORMALIZED_MIN = 1.0
NORMALIZED_MAX = 100.0


class ScoreSkipped(Exception):
    """
    Not enough usable scan data to score a user.

    This is a normal state for new contestants, not a failure: the
    recalculation driver logs it and moves on.
    """


@dataclass
class RawScores:
    fat_loss_raw: float
    muscle_gain_raw: float
    body_fat_change_percent: float
    lean_mass_change_percent: float


@dataclass
class ScoringRange:
    min_fat_loss: float = 0.0
    max_fat_loss: float = 0.0
    min_muscle_gain: float = 0.0
    max_muscle_gain: float = 0.0
    participant_count: int = 0

    def to_dict(self) -> dict:
        return {
            "min_fat_loss": self.min_fat_loss,
            "max_fat_loss": self.max_fat_loss,
            "min_muscle_gain": self.min_muscle_gain,
            "max_muscle_gain": self.max_muscle_gain,
            "participant_count": self.participant_count,
        }


def normalize_gender(gender: Optional[str]) -> str:
    """Anything that isn't clearly female is scored with the male constants."""
    g = (gender or "").strip().lower()
    if g in ("f", "female", "woman", "women"):
        return "female"
    return "male"


# --- Raw components ---

def leanness_multiplier(gender: Optional[str], baseline_body_fat: float) -> float:
    """
    Fat-loss bonus for contestants who start leaner.

    Each percentage point is harder to lose the leaner you already are, so
    the multiplier steps up from 1.0 as baseline body fat drops.
    """
    for upper, multiplier in LEANNESS_BANDS[normalize_gender(gender)]:
        if baseline_body_fat < upper:
            return multiplier
    return 1.0


def fat_loss_raw(start_body_fat: float, end_body_fat: float, gender: Optional[str]) -> float:
    """
    ln(BF%_start / BF%_end) x 100 x leanness multiplier.

    Only losses count; an unchanged or higher body fat scores 0.
    """
    if start_body_fat <= 0 or end_body_fat <= 0:
        raise ScoreSkipped("body fat percent must be positive")

    if end_body_fat >= start_body_fat:
        return 0.0

    multiplier = leanness_multiplier(gender, start_body_fat)
    return max(0.0, math.log(start_body_fat / end_body_fat) * 100 * multiplier)


def muscle_gain_raw(start_lean_mass: float, end_lean_mass: float, gender: Optional[str]) -> float:
    """
    Lean mass % change x 17 x gender multiplier (men 1.0, women 2.0).

    Only gains count; a loss scores 0.
    """
    if start_lean_mass <= 0:
        raise ScoreSkipped("baseline lean mass must be positive")

    change_percent = percentage_change(start_lean_mass, end_lean_mass)
    if change_percent <= 0:
        return 0.0

    multiplier = GENDER_MULTIPLIER[normalize_gender(gender)]
    return change_percent * MUSCLE_GAIN_FACTOR * multiplier


def percentage_change(baseline: float, target: float) -> float:
    if baseline == 0:
        return 0.0
    return ((target - baseline) / baseline) * 100


def calculate_raw_scores(baseline, latest, gender: Optional[str]) -> RawScores:
    """
    Raw (pre-normalization) scores between a baseline and a later scan.

    `baseline` and `latest` only need body_fat_percent and lean_mass; when
    they also carry id / scan_date those are checked too.
    """
    if baseline is latest:
        raise ScoreSkipped("baseline and latest are the same scan")

    baseline_id = getattr(baseline, "id", None)
    if baseline_id is not None and baseline_id == getattr(latest, "id", None):
        raise ScoreSkipped("baseline and latest are the same scan")

    baseline_date = getattr(baseline, "scan_date", None)
    latest_date = getattr(latest, "scan_date", None)
    if baseline_date is not None and latest_date is not None and latest_date <= baseline_date:
        raise ScoreSkipped("latest scan is not after the baseline scan")

    if baseline.lean_mass is None or latest.lean_mass is None or latest.lean_mass <= 0:
        raise ScoreSkipped("lean mass must be positive")

    return RawScores(
        fat_loss_raw=fat_loss_raw(baseline.body_fat_percent, latest.body_fat_percent, gender),
        muscle_gain_raw=muscle_gain_raw(baseline.lean_mass, latest.lean_mass, gender),
        body_fat_change_percent=percentage_change(baseline.body_fat_percent, latest.body_fat_percent),
        lean_mass_change_percent=percentage_change(baseline.lean_mass, latest.lean_mass),
    )


# --- Normalization ---

def calculate_scoring_range(raw_scores: Iterable[RawScores]) -> ScoringRange:
    """
    Population min/max for the normalization pass.

    Fat loss only ranges over contestants who actually lost fat; muscle gain
    ranges over everyone (zero gains included).
    """
    raw_scores = list(raw_scores)
    fat = [r.fat_loss_raw for r in raw_scores if r.fat_loss_raw > 0]
    muscle = [r.muscle_gain_raw for r in raw_scores]

    return ScoringRange(
        min_fat_loss=min(fat) if fat else 0.0,
        max_fat_loss=max(fat) if fat else 0.0,
        min_muscle_gain=min(muscle) if muscle else 0.0,
        max_muscle_gain=max(muscle) if muscle else 0.0,
        participant_count=len(raw_scores),
    )


def _min_max(raw: float, lo: float, hi: float) -> float:
    scaled = NORMALIZED_MIN + ((raw - lo) / (hi - lo)) * (NORMALIZED_MAX - NORMALIZED_MIN)
    return max(NORMALIZED_MIN, min(NORMALIZED_MAX, scaled))


def normalize_fat_loss(raw: float, rng: ScoringRange) -> float:
    if raw <= 0:
        return 0.0
    if rng.max_fat_loss > rng.min_fat_loss:
        return _min_max(raw, rng.min_fat_loss, rng.max_fat_loss)
    # everyone who lost fat lost the same amount
    return NORMALIZED_MAX


def normalize_muscle_gain(raw: float, rng: ScoringRange) -> float:
    if raw < 0:
        return 0.0
    if rng.max_muscle_gain > rng.min_muscle_gain:
        return _min_max(raw, rng.min_muscle_gain, rng.max_muscle_gain)
    return NORMALIZED_MAX if raw > 0 else 0.0


def score_breakdown(raw: RawScores, rng: ScoringRange) -> dict:
    """Normalized components and their 0-200 total."""
    fat = normalize_fat_loss(raw.fat_loss_raw, rng)
    muscle = normalize_muscle_gain(raw.muscle_gain_raw, rng)
    return {
        "fat_loss_score": fat,
        "muscle_gain_score": muscle,
        "total_score": fat + muscle,
    }


# --- Projections ---

def project_scores(baseline, target_body_fat: float, target_lean_mass: float,
                   gender: Optional[str], rng: Optional[ScoringRange] = None) -> dict:
    """
    What the contestant would score if they hit their targets exactly.

    With a range from the last normalization pass the projection is also
    normalized against the current field.
    """
    raw = RawScores(
        fat_loss_raw=fat_loss_raw(baseline.body_fat_percent, target_body_fat, gender),
        muscle_gain_raw=muscle_gain_raw(baseline.lean_mass, target_lean_mass, gender),
        body_fat_change_percent=percentage_change(baseline.body_fat_percent, target_body_fat),
        lean_mass_change_percent=percentage_change(baseline.lean_mass, target_lean_mass),
    )

    out = {
        "fat_loss_raw": raw.fat_loss_raw,
        "muscle_gain_raw": raw.muscle_gain_raw,
        "body_fat_change_percent": raw.body_fat_change_percent,
        "lean_mass_change_percent": raw.lean_mass_change_percent,
    }

    if rng is None:
        out.update({
            "fat_loss_score": raw.fat_loss_raw,
            "muscle_gain_score": raw.muscle_gain_raw,
            "total_score": raw.fat_loss_raw + raw.muscle_gain_raw,
            "normalized": False,
        })
    else:
        out.update(score_breakdown(raw, rng))
        out["normalized"] = True

    return out


def validate_target_goals(baseline, target_body_fat: float, target_lean_mass: float) -> list[str]:
    warnings = []

    if target_body_fat < 3 or target_body_fat > 50:
        warnings.append("Target body fat should be between 3% and 50%")

    if baseline.body_fat_percent - target_body_fat > 15:
        warnings.append("Targeting more than 15% body fat reduction may be unrealistic in 100 days")

    if baseline.lean_mass and percentage_change(baseline.lean_mass, target_lean_mass) > 10:
        warnings.append("Targeting more than 10% lean mass gain may be unrealistic in 100 days")

    if target_lean_mass < 50:
        warnings.append("Target lean mass should be at least 50 lbs")

    return warnings
