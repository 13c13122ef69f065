import math
from datetime import datetime
from types import SimpleNamespace

import pytest

from recomp.helpers.scoring import (
    RawScores,
    ScoreSkipped,
    ScoringRange,
    calculate_raw_scores,
    calculate_scoring_range,
    fat_loss_raw,
    leanness_multiplier,
    muscle_gain_raw,
    normalize_fat_loss,
    normalize_gender,
    normalize_muscle_gain,
    project_scores,
    score_breakdown,
    validate_target_goals,
)


def _scan(scan_id, day, body_fat, lean_mass):
    return SimpleNamespace(
        id=scan_id,
        scan_date=datetime(2025, 8, day),
        body_fat_percent=body_fat,
        lean_mass=lean_mass,
    )


def _raw(fat, muscle):
    return RawScores(fat_loss_raw=fat, muscle_gain_raw=muscle,
                     body_fat_change_percent=0.0, lean_mass_change_percent=0.0)


@pytest.mark.parametrize(
    "gender, body_fat, expected",
    [
        ("male", 14.9, 1.4),
        ("male", 15, 1.3),
        ("male", 17.9, 1.3),
        ("male", 20, 1.2),
        ("male", 24.9, 1.1),
        ("male", 25, 1.0),
        ("female", 19, 1.4),
        ("female", 22, 1.3),
        ("female", 25, 1.2),
        ("female", 29.9, 1.1),
        ("female", 30, 1.0),
    ],
)
def test_leanness_multiplier_bands(gender, body_fat, expected):
    assert leanness_multiplier(gender, body_fat) == expected


def test_unknown_gender_uses_male_constants():
    assert normalize_gender(None) == "male"
    assert normalize_gender(" Female ") == "female"
    assert leanness_multiplier("other", 14) == 1.4


def test_fat_loss_example_25_to_20():
    raw = fat_loss_raw(25, 20, "male")
    assert raw == pytest.approx(math.log(25 / 20) * 100 * 1.0)
    assert raw > 0


def test_fat_loss_uses_baseline_leanness():
    assert fat_loss_raw(20, 18, "male") == pytest.approx(math.log(20 / 18) * 100 * 1.2)


def test_fat_loss_zero_when_unchanged_or_higher():
    assert fat_loss_raw(22, 22, "male") == 0.0
    assert fat_loss_raw(22, 24, "female") == 0.0


def test_fat_loss_rejects_non_positive_body_fat():
    with pytest.raises(ScoreSkipped):
        fat_loss_raw(0, 20, "male")
    with pytest.raises(ScoreSkipped):
        fat_loss_raw(20, 0, "male")


def test_muscle_gain_gender_multiplier():
    assert muscle_gain_raw(130, 132.6, "male") == pytest.approx(2 * 17)
    assert muscle_gain_raw(130, 132.6, "female") == pytest.approx(2 * 17 * 2)


def test_muscle_gain_zero_when_unchanged_or_lost():
    assert muscle_gain_raw(130, 130, "male") == 0.0
    assert muscle_gain_raw(130, 125, "male") == 0.0


def test_calculate_raw_scores_example():
    raw = calculate_raw_scores(_scan(1, 4, 25, 130), _scan(2, 30, 20, 130), "male")
    assert raw.muscle_gain_raw == 0.0
    assert raw.fat_loss_raw == pytest.approx(math.log(1.25) * 100)
    assert raw.body_fat_change_percent == pytest.approx(-20.0)
    assert raw.lean_mass_change_percent == 0.0


def test_calculate_raw_scores_same_scan_is_skipped():
    scan = _scan(1, 4, 25, 130)
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(scan, scan, "male")
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(scan, _scan(1, 30, 20, 130), "male")


def test_calculate_raw_scores_latest_must_be_after_baseline():
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(_scan(1, 10, 25, 130), _scan(2, 10, 20, 130), "male")
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(_scan(1, 10, 25, 130), _scan(2, 4, 20, 130), "male")


def test_calculate_raw_scores_rejects_zero_lean_mass():
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(_scan(1, 4, 25, 0), _scan(2, 30, 20, 130), "male")
    with pytest.raises(ScoreSkipped):
        calculate_raw_scores(_scan(1, 4, 25, 130), _scan(2, 30, 20, 0), "male")


def test_scoring_range_fat_loss_ignores_non_positive():
    rng = calculate_scoring_range([_raw(0.0, 10.0), _raw(12.0, 0.0), _raw(30.0, 40.0)])
    assert rng.min_fat_loss == 12.0
    assert rng.max_fat_loss == 30.0
    assert rng.min_muscle_gain == 0.0
    assert rng.max_muscle_gain == 40.0
    assert rng.participant_count == 3


def test_scoring_range_empty_population():
    rng = calculate_scoring_range([])
    assert rng == ScoringRange()


def test_normalize_fat_loss_min_max():
    rng = ScoringRange(min_fat_loss=10.0, max_fat_loss=30.0)
    assert normalize_fat_loss(10.0, rng) == 1.0
    assert normalize_fat_loss(30.0, rng) == 100.0
    assert normalize_fat_loss(20.0, rng) == pytest.approx(50.5)
    assert normalize_fat_loss(0.0, rng) == 0.0


def test_normalize_degenerate_range():
    rng = ScoringRange(min_fat_loss=12.0, max_fat_loss=12.0,
                       min_muscle_gain=0.0, max_muscle_gain=0.0)
    assert normalize_fat_loss(12.0, rng) == 100.0
    assert normalize_muscle_gain(0.0, rng) == 0.0
    assert normalize_muscle_gain(5.0, ScoringRange(min_muscle_gain=5.0, max_muscle_gain=5.0)) == 100.0


def test_normalization_is_monotonic():
    rng = ScoringRange(min_fat_loss=2.0, max_fat_loss=50.0,
                       min_muscle_gain=0.0, max_muscle_gain=80.0)
    raws = [2.0, 5.0, 11.0, 20.0, 33.3, 50.0]
    fat = [normalize_fat_loss(r, rng) for r in raws]
    muscle = [normalize_muscle_gain(r, rng) for r in raws]
    assert fat == sorted(fat)
    assert muscle == sorted(muscle)


def test_score_breakdown_total_is_sum_and_bounded():
    rng = ScoringRange(min_fat_loss=5.0, max_fat_loss=25.0,
                       min_muscle_gain=0.0, max_muscle_gain=60.0)
    for fat, muscle in [(0.0, 0.0), (5.0, 60.0), (25.0, 60.0), (12.0, 7.0)]:
        scores = score_breakdown(_raw(fat, muscle), rng)
        assert scores["total_score"] == scores["fat_loss_score"] + scores["muscle_gain_score"]
        assert 0.0 <= scores["total_score"] <= 200.0


def test_project_scores_without_range_is_raw():
    baseline = _scan(1, 4, 25, 130)
    out = project_scores(baseline, 20, 132.6, "male")
    assert out["normalized"] is False
    assert out["fat_loss_score"] == pytest.approx(math.log(1.25) * 100)
    assert out["muscle_gain_score"] == pytest.approx(34.0)
    assert out["total_score"] == pytest.approx(out["fat_loss_score"] + out["muscle_gain_score"])


def test_project_scores_with_range_is_normalized():
    baseline = _scan(1, 4, 25, 130)
    rng = ScoringRange(min_fat_loss=1.0, max_fat_loss=10.0,
                       min_muscle_gain=0.0, max_muscle_gain=20.0, participant_count=4)
    out = project_scores(baseline, 20, 132.6, "male", rng)
    assert out["normalized"] is True
    assert out["fat_loss_score"] == 100.0
    assert out["muscle_gain_score"] == 100.0


def test_validate_target_goals():
    baseline = _scan(1, 4, 30, 130)
    assert validate_target_goals(baseline, 25, 135) == []

    warnings = validate_target_goals(baseline, 2, 40)
    assert len(warnings) == 3
