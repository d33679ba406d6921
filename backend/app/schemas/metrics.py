"""Dashboard metrics schemas."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class MonthBucket(BaseModel):
    key: str
    label: str
    count: int

    model_config = ConfigDict(frozen=True)


class TargetProgress(BaseModel):
    role: str
    team_size: int
    per_user_quota: int
    target: int
    accepted: int
    percent: int
    remaining: int
    incentive_mark: int
    bonus_mark: int
    milestone: Literal["bonus", "incentive", "none"]


class MetricsSnapshot(BaseModel):
    accepted_this_month: int
    overdue: int
    open: int
    follow_up: int
    trailing_months: List[MonthBucket]
    target: int
    progress_percent: int
    progress: TargetProgress
    scope: Literal["all", "mine"]
    load_error: Optional[str] = None
