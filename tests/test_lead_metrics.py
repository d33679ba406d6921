from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from backend.app.services.lead_metrics import (
    bonus_mark,
    build_snapshot,
    follow_up_count,
    incentive_mark,
    matches_quick_filter,
    month_accepted,
    open_count,
    overdue_count,
    progress_percent,
    target,
    target_progress,
    trailing_months,
)
from backend.app.services.lead_store import LeadSnapshot

NOW = datetime(2024, 3, 15, 12, 0, 0)


def make_lead(lead_id=1, status="New", created_at=NOW, next_action_at=None):
    return LeadSnapshot(
        id=lead_id,
        name=f"Lead {lead_id}",
        status=status,
        created_at=created_at,
        next_action_at=next_action_at,
    )


def test_month_accepted_counts_only_accepted_in_current_month():
    leads = [
        make_lead(1, "Accepted", datetime(2024, 3, 1, 0, 0, 0)),
        make_lead(2, "accepted", datetime(2024, 3, 31, 23, 59, 59)),
        make_lead(3, "Accepted", datetime(2024, 2, 29, 23, 59, 59)),
        make_lead(4, "Open", datetime(2024, 3, 10)),
        make_lead(5, "Accepted", datetime(2024, 4, 1, 0, 0, 0)),
    ]
    assert month_accepted(leads, NOW) == 2


def test_leap_day_boundary_lands_in_february_bucket():
    on_boundary = make_lead(1, "Accepted", datetime(2024, 2, 29, 23, 59, 59))
    one_second_later = make_lead(2, "Accepted", datetime(2024, 3, 1, 0, 0, 0))

    buckets = trailing_months([on_boundary], NOW)
    counts = {b.key: b.count for b in buckets}
    assert counts["2024-02"] == 1
    assert counts["2024-03"] == 0
    assert month_accepted([on_boundary], NOW) == 0

    counts = {b.key: b.count for b in trailing_months([one_second_later], NOW)}
    assert counts["2024-02"] == 0
    assert counts["2024-03"] == 1


def test_month_boundary_uses_viewer_timezone():
    london = ZoneInfo("Europe/London")
    now = datetime(2024, 7, 15, 12, 0, tzinfo=london)
    # 23:30 UTC on 30 June is 00:30 on 1 July in London (BST).
    lead = make_lead(1, "Accepted", datetime(2024, 6, 30, 23, 30, tzinfo=timezone.utc))
    assert month_accepted([lead], now) == 1
    assert month_accepted([lead], datetime(2024, 7, 15, 12, 0, tzinfo=timezone.utc)) == 0


def test_overdue_excludes_accepted_and_follow_up():
    yesterday = NOW - timedelta(days=1)
    leads = [
        make_lead(1, "Accepted", next_action_at=yesterday),
        make_lead(2, "Follow Up", next_action_at=yesterday),
        make_lead(3, "follow-up", next_action_at=yesterday),
        make_lead(4, "Open", next_action_at=yesterday),
        make_lead(5, None, next_action_at=yesterday),
        make_lead(6, "Open", next_action_at=NOW + timedelta(hours=1)),
        make_lead(7, "Open", next_action_at=None),
        make_lead(8, "Open", next_action_at=NOW),
    ]
    assert overdue_count(leads, NOW) == 2


def test_open_count_excludes_terminal_statuses():
    leads = [
        make_lead(1, "Accepted"),
        make_lead(2, "CLOSED"),
        make_lead(3, "Rejected"),
        make_lead(4, "New"),
        make_lead(5, "Hotkey Request"),
        make_lead(6, None),
        make_lead(7, "Some custom stage"),
    ]
    assert open_count(leads) == 4


def test_follow_up_count_accepts_hyphenated_alias():
    leads = [make_lead(1, "Follow Up"), make_lead(2, "follow-up"), make_lead(3, "Open")]
    assert follow_up_count(leads) == 2


def test_trailing_months_are_ordered_and_distinct():
    buckets = trailing_months([], NOW)
    assert [b.label for b in buckets] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
    assert [b.key for b in buckets] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert all(b.count == 0 for b in buckets)


def test_trailing_months_ignores_out_of_window_and_non_accepted():
    leads = [
        make_lead(1, "Accepted", datetime(2023, 9, 30, 23, 59, 59)),
        make_lead(2, "Accepted", datetime(2023, 10, 1)),
        make_lead(3, "Open", datetime(2024, 1, 5)),
        make_lead(4, "Accepted", datetime(2024, 1, 5)),
        make_lead(5, "Accepted", datetime(2024, 1, 20)),
    ]
    counts = {b.key: b.count for b in trailing_months(leads, NOW)}
    assert counts == {
        "2023-10": 1,
        "2023-11": 0,
        "2023-12": 0,
        "2024-01": 2,
        "2024-02": 0,
        "2024-03": 0,
    }


def test_trailing_months_custom_width():
    assert len(trailing_months([], NOW, n=12)) == 12
    assert trailing_months([], NOW, n=0) == []


@pytest.mark.parametrize(
    "role,team_size,expected",
    [
        ("user", 10, 3),
        ("team_leader", 4, 20),
        ("admin", 4, 28),
        ("team_leader", 0, 5),
        ("admin", None, 7),
        ("something-else", 9, 3),
    ],
)
def test_target_by_role(role, team_size, expected):
    assert target(role, team_size) == expected


def test_incentive_and_bonus_marks_scale_with_team():
    assert incentive_mark("user", 8) == 5
    assert bonus_mark("user", 8) == 7
    assert incentive_mark("team_leader", 4) == 20
    assert bonus_mark("admin", 4) == 28


def test_progress_percent_rounds_and_clamps():
    assert progress_percent(15, 20) == 75
    assert progress_percent(1, 3) == 33
    assert progress_percent(2, 3) == 67
    assert progress_percent(1, 8) == 13
    assert progress_percent(25, 20) == 100


@pytest.mark.parametrize("bad_target", [0, -5, None])
def test_progress_percent_zero_target_is_zero(bad_target):
    assert progress_percent(5, bad_target) == 0
    assert progress_percent(0, bad_target) == 0


def test_progress_percent_is_monotonic():
    for goal in (1, 3, 7, 20, 28):
        values = [progress_percent(accepted, goal) for accepted in range(0, goal * 2)]
        assert values == sorted(values)
        assert all(v == 100 for v in values[goal:])


def test_target_progress_milestones():
    assert target_progress("user", 1, 2).milestone == "none"
    assert target_progress("user", 1, 5).milestone == "incentive"
    assert target_progress("user", 1, 7).milestone == "bonus"
    progress = target_progress("user", 1, 1)
    assert progress.remaining == 2
    assert target_progress("user", 1, 9).remaining == 0


def test_malformed_records_degrade_gracefully():
    leads = [
        make_lead(1, "Accepted", created_at=None),
        make_lead(2, "Accepted", created_at="not a date"),
        {"id": 3, "status": "Accepted", "created_at": "2024-03-02T10:00:00"},
        SimpleNamespace(id=4),
        None,
    ]
    assert month_accepted(leads, NOW) == 1
    # Lead 4 has no status at all and reads as New.
    assert open_count(leads) == 1
    assert overdue_count(leads, NOW) == 0
    assert sum(b.count for b in trailing_months(leads, NOW)) == 1


def test_empty_input_yields_zeroes():
    snapshot = build_snapshot([], role="user", team_size=0, now=NOW)
    assert snapshot.accepted_this_month == 0
    assert snapshot.overdue == 0
    assert snapshot.open == 0
    assert snapshot.follow_up == 0
    assert snapshot.progress_percent == 0
    assert snapshot.target == 3
    assert len(snapshot.trailing_months) == 6


def test_team_leader_end_to_end_snapshot():
    leads = [make_lead(i, "Accepted", datetime(2024, 3, 1 + (i % 10))) for i in range(15)]
    snapshot = build_snapshot(leads, role="team_leader", team_size=4, now=NOW)
    assert snapshot.target == 20
    assert snapshot.accepted_this_month == 15
    assert snapshot.progress_percent == 75
    assert snapshot.scope == "all"
    assert snapshot.progress.remaining == 5

    empty_history = build_snapshot([], role="team_leader", team_size=4, now=NOW)
    labels = [b.label for b in empty_history.trailing_months]
    assert len(labels) == len(set(labels)) == 6
    assert all(b.count == 0 for b in empty_history.trailing_months)


def test_user_snapshot_scope_is_mine():
    assert build_snapshot([], role="user", team_size=5, now=NOW).scope == "mine"


def test_quick_filters_match_counts():
    yesterday = NOW - timedelta(days=1)
    leads = [
        make_lead(1, "Accepted", datetime(2024, 3, 2)),
        make_lead(2, "Open", next_action_at=yesterday),
        make_lead(3, "Follow Up"),
    ]
    assert [l.id for l in leads if matches_quick_filter(l, "accepted_this_month", NOW)] == [1]
    assert [l.id for l in leads if matches_quick_filter(l, "overdue", NOW)] == [2]
    assert [l.id for l in leads if matches_quick_filter(l, "open", NOW)] == [2, 3]
    assert [l.id for l in leads if matches_quick_filter(l, "follow_up", NOW)] == [3]
    with pytest.raises(ValueError):
        matches_quick_filter(leads[0], "nope", NOW)
