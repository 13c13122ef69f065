from datetime import datetime

import pytest

from recomp.helpers.competition import (
    classify_scan_date,
    competition_status,
    should_show_date_warning,
)
from recomp.helpers.time import parse_datetime

START = datetime(2025, 8, 4)
END = datetime(2025, 11, 26, 23, 59, 59)


@pytest.mark.parametrize(
    "scan_date, category, eligible, warning",
    [
        (datetime(2025, 8, 4), "competition", True, None),
        (datetime(2025, 7, 10), "competition", True, None),
        (datetime(2025, 6, 1), "competition", True, "pre-challenge"),
        (datetime(2025, 4, 1), "historical", False, "historical"),
        (datetime(2025, 12, 5), "competition", True, None),
        (datetime(2025, 12, 20), "post-challenge", False, "post-challenge"),
    ],
)
def test_classify_scan_date(scan_date, category, eligible, warning):
    out = classify_scan_date(scan_date, START, END)
    assert out["category"] == category
    assert out["is_competition_eligible"] is eligible
    assert out["warning_type"] == warning
    assert (out["message"] is None) == (warning is None)


def test_classify_reads_window_from_config(app):
    assert classify_scan_date(datetime(2025, 4, 1))["category"] == "historical"
    assert classify_scan_date(datetime(2025, 9, 1))["is_competition_eligible"] is True


def test_should_show_date_warning():
    assert should_show_date_warning(datetime(2025, 5, 1), START, END) is True
    assert should_show_date_warning(datetime(2025, 7, 1), START, END) is False
    assert should_show_date_warning(datetime(2025, 12, 20), START, END) is True


def test_competition_status(app):
    before = competition_status(datetime(2025, 8, 1, 12))
    assert before["status"] == "not-started"
    assert before["days_until_start"] == 3

    during = competition_status(datetime(2025, 8, 14))
    assert during["status"] == "active"
    assert during["days_elapsed"] == 10
    assert during["days_remaining"] == 105

    assert competition_status(datetime(2025, 12, 1))["status"] == "ended"


def test_parse_datetime():
    assert parse_datetime("2025-08-04") == datetime(2025, 8, 4)
    assert parse_datetime("2025-08-04T10:00:00Z") == datetime(2025, 8, 4, 10)
    assert parse_datetime("2025-08-04T12:00:00+02:00") == datetime(2025, 8, 4, 10)
    assert parse_datetime("") is None
    with pytest.raises(ValueError):
        parse_datetime("not a date")
