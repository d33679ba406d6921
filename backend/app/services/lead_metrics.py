"""Role-scoped lead metrics for the dashboard.

Every function here is a pure function of a lead snapshot, the viewer's role
and an explicit ``now``. The timezone of ``now`` defines the viewer's local
calendar month. Leads may be ORM rows, ``LeadSnapshot`` objects or plain
mappings; missing or unreadable fields only exclude a record from the
computations that need them.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from backend.app.core.records import read_field
from backend.app.core.statuses import LeadStatus, is_accepted, is_follow_up, is_terminal, parse_status
from backend.app.core.time import (
    align_to,
    coerce_datetime,
    end_of_month,
    month_key,
    month_label,
    shift_months,
    start_of_month,
)
from backend.app.models.user import PRIVILEGED_ROLES, ROLE_ADMIN, ROLE_TEAM_LEADER, ROLE_USER
from backend.app.schemas.metrics import MetricsSnapshot, MonthBucket, TargetProgress

PER_USER_QUOTA = {ROLE_USER: 3, ROLE_TEAM_LEADER: 5, ROLE_ADMIN: 7}
INCENTIVE_PER_USER = 5
BONUS_PER_USER = 7
TRAILING_MONTHS = 6

QUICK_FILTERS = ("accepted_this_month", "overdue", "open", "follow_up")


def _records(leads) -> list:
    if not leads:
        return []
    return [lead for lead in leads if lead is not None]


def _moment(lead, name: str, now: datetime) -> Optional[datetime]:
    value = coerce_datetime(read_field(lead, name))
    if value is None:
        return None
    return align_to(value, now)


def _status(lead):
    return read_field(lead, "status")


# Per-lead predicates, shared by the counts and the quick filters.


def is_accepted_this_month(lead, now: datetime) -> bool:
    if not is_accepted(_status(lead)):
        return False
    created = _moment(lead, "created_at", now)
    if created is None:
        return False
    return start_of_month(now) <= created <= end_of_month(now)


def is_overdue(lead, now: datetime) -> bool:
    if parse_status(_status(lead)).kind in (LeadStatus.ACCEPTED, LeadStatus.FOLLOW_UP):
        return False
    due = _moment(lead, "next_action_at", now)
    return due is not None and due < now


def is_open(lead) -> bool:
    return not is_terminal(_status(lead))


def is_follow_up_lead(lead) -> bool:
    return is_follow_up(_status(lead))


def month_accepted(leads: Iterable, now: datetime) -> int:
    return sum(1 for lead in _records(leads) if is_accepted_this_month(lead, now))


def overdue_count(leads: Iterable, now: datetime) -> int:
    return sum(1 for lead in _records(leads) if is_overdue(lead, now))


def open_count(leads: Iterable) -> int:
    return sum(1 for lead in _records(leads) if is_open(lead))


def follow_up_count(leads: Iterable) -> int:
    return sum(1 for lead in _records(leads) if is_follow_up_lead(lead))


def trailing_months(leads: Iterable, now: datetime, n: int = TRAILING_MONTHS) -> List[MonthBucket]:
    """Accepted leads per calendar month for the last ``n`` months, oldest first."""
    if n <= 0:
        return []
    months = [shift_months(now, -offset) for offset in range(n - 1, -1, -1)]
    counts = {month_key(month): 0 for month in months}
    for lead in _records(leads):
        if not is_accepted(_status(lead)):
            continue
        created = _moment(lead, "created_at", now)
        if created is None:
            continue
        key = month_key(created)
        if key in counts:
            counts[key] += 1
    return [
        MonthBucket(key=month_key(month), label=month_label(month), count=counts[month_key(month)])
        for month in months
    ]


def _role(role) -> str:
    value = getattr(role, "value", role)
    value = str(value or "").strip().lower()
    return value if value in PER_USER_QUOTA else ROLE_USER


def per_user_quota(role) -> int:
    return PER_USER_QUOTA[_role(role)]


def team_multiplier(role, team_size) -> int:
    if _role(role) == ROLE_USER:
        return 1
    try:
        size = int(team_size or 0)
    except (TypeError, ValueError):
        size = 0
    return max(1, size)


def target(role, team_size) -> int:
    return per_user_quota(role) * team_multiplier(role, team_size)


def incentive_mark(role, team_size) -> int:
    return INCENTIVE_PER_USER * team_multiplier(role, team_size)


def bonus_mark(role, team_size) -> int:
    return BONUS_PER_USER * team_multiplier(role, team_size)


def progress_percent(accepted, target) -> int:
    try:
        accepted_value = max(0, int(accepted or 0))
        target_value = int(target or 0)
    except (TypeError, ValueError, OverflowError):
        return 0
    if target_value <= 0:
        return 0
    ratio = min(Decimal(100), Decimal(100 * accepted_value) / Decimal(target_value))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def target_progress(role, team_size, accepted) -> TargetProgress:
    goal = target(role, team_size)
    accepted_value = max(0, int(accepted or 0))
    incentive = incentive_mark(role, team_size)
    bonus = bonus_mark(role, team_size)
    if accepted_value >= bonus:
        milestone = "bonus"
    elif accepted_value >= incentive:
        milestone = "incentive"
    else:
        milestone = "none"
    return TargetProgress(
        role=_role(role),
        team_size=team_multiplier(role, team_size),
        per_user_quota=per_user_quota(role),
        target=goal,
        accepted=accepted_value,
        percent=progress_percent(accepted_value, goal),
        remaining=max(0, goal - accepted_value),
        incentive_mark=incentive,
        bonus_mark=bonus,
        milestone=milestone,
    )


def build_snapshot(
    leads: Iterable,
    *,
    role,
    team_size: int,
    now: datetime,
    months: int = TRAILING_MONTHS,
    load_error: Optional[str] = None,
) -> MetricsSnapshot:
    records = _records(leads)
    accepted = month_accepted(records, now)
    progress = target_progress(role, team_size, accepted)
    return MetricsSnapshot(
        accepted_this_month=accepted,
        overdue=overdue_count(records, now),
        open=open_count(records),
        follow_up=follow_up_count(records),
        trailing_months=trailing_months(records, now, months),
        target=progress.target,
        progress_percent=progress.percent,
        progress=progress,
        scope="all" if _role(role) in PRIVILEGED_ROLES else "mine",
        load_error=load_error,
    )


def matches_quick_filter(lead, name: str, now: datetime) -> bool:
    """Drill-down predicate behind each dashboard tile."""
    if name == "accepted_this_month":
        return is_accepted_this_month(lead, now)
    if name == "overdue":
        return is_overdue(lead, now)
    if name == "open":
        return is_open(lead)
    if name == "follow_up":
        return is_follow_up_lead(lead)
    raise ValueError(f"Unknown quick filter: {name}")
