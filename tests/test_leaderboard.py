from datetime import datetime
from types import SimpleNamespace

import pytest

from recomp.extensions import db
from recomp.helpers.leaderboard import (
    _assign_positions,
    build_contestants,
    build_leaderboard,
    display_name_for,
    target_progress,
)
from recomp.helpers.leaderboard_cache import get_cached_rows
from recomp.helpers.recalculate import recalculate_all_scores


def _user(**fields):
    base = dict(first_name=None, name=None, email=None, username=None)
    base.update(fields)
    return SimpleNamespace(**base)


def _named_scan(scan_id, scan_name):
    return SimpleNamespace(id=scan_id, scan_name=scan_name,
                           created_at=datetime(2025, 8, scan_id), scan_date=datetime(2025, 8, scan_id))


def test_display_name_priority():
    assert display_name_for(_user(first_name="Jaron", username="jp"), []) == "Jaron"
    assert display_name_for(_user(username="jp"), [_named_scan(1, "Parnala, Jaron")]) == "Jaron"
    assert display_name_for(_user(username="jp"), [_named_scan(1, "Jaron Parnala")]) == "Jaron"
    assert display_name_for(_user(name="Sam Lee", username="sl"), []) == "Sam"
    assert display_name_for(_user(email="kim@example.com", username="k"), []) == "kim"
    assert display_name_for(_user(username="kim99"), []) == "kim99"
    assert display_name_for(_user(), []) == "Anonymous"


def test_display_name_uses_latest_named_scan():
    scans = [_named_scan(1, "Old, Name"), _named_scan(2, "Newer Person")]
    assert display_name_for(_user(username="x"), scans) == "Newer"


def test_target_progress():
    assert target_progress(25, 20, 15, "decrease") == pytest.approx(50.0)
    assert target_progress(25, 27, 15, "decrease") == 0.0
    assert target_progress(25, 10, 15, "decrease") == 100.0
    assert target_progress(130, 132, 134, "increase") == pytest.approx(50.0)
    assert target_progress(130, 130, 125, "increase") == 100.0


def test_ties_share_a_rank():
    rows = [{"total_score": 150.0}, {"total_score": 150.0}, {"total_score": 90.0}, {"total_score": 0.0}]
    _assign_positions(rows)
    assert [r["rank"] for r in rows] == [1, 1, 2, 3]


@pytest.fixture
def board(make_user, make_scan):
    alice = make_user("alice", first_name="Alice")
    make_scan(alice, "2025-08-04", 25, 130)
    make_scan(alice, "2025-09-23", 20, 130)

    bob = make_user("bob", first_name="Bob")
    make_scan(bob, "2025-08-04", 30, 140)
    make_scan(bob, "2025-09-23", 28, 141.4)

    carol = make_user("carol", first_name="Carol", gender="female")
    make_scan(carol, "2025-08-10", 32, 95)

    # registered but never uploaded: not on the board
    make_user("dave")

    return alice, bob, carol


def test_leaderboard_order_and_unscored(board):
    alice, bob, carol = board
    rows = build_leaderboard()

    assert [r["user_id"] for r in rows] == [alice.id, bob.id, carol.id]
    assert [r["rank"] for r in rows] == [1, 2, 3]

    assert rows[0]["scored"] is True
    assert rows[0]["display_name"] == "Alice"
    assert rows[0]["body_fat_change"] == pytest.approx(-20.0)
    assert rows[0]["total_scans"] == 2

    unscored = rows[2]
    assert unscored["scored"] is False
    assert unscored["total_score"] == 0.0
    assert unscored["last_calculated"] is None


def test_leaderboard_is_sorted_descending(board):
    totals = [r["total_score"] for r in build_leaderboard()]
    assert totals == sorted(totals, reverse=True)


def test_inactive_users_hidden(board):
    alice, bob, carol = board
    bob.is_active = False
    db.session.commit()

    recalculate_all_scores()

    ids = [r["user_id"] for r in build_leaderboard()]
    assert bob.id not in ids
    assert ids[0] == alice.id


def test_leaderboard_cached_until_recalculation(board, make_scan):
    alice, _, carol = board
    first = build_leaderboard()
    assert get_cached_rows("leaderboard") is first

    # a scan write recalculates and clears the cache
    make_scan(carol, "2025-10-01", 28, 97)
    rows = build_leaderboard()
    assert rows is not first
    carol_row = next(r for r in rows if r["user_id"] == carol.id)
    assert carol_row["scored"] is True


def test_contestants_list_baselines(board):
    alice, bob, carol = board
    rows = build_contestants()

    assert [r["user"]["id"] for r in rows] == [alice.id, bob.id, carol.id]
    assert rows[0]["baseline_scan"]["body_fat_percent"] == 25
    assert rows[2]["baseline_scan"]["scan_date"] == "2025-08-10T00:00:00"
