"""Lead pipeline statuses.

Statuses are an open enumeration: the known stages below are recognised
case-insensitively (with a few spelling aliases), and anything else is kept
as a ``CUSTOM`` value carrying its original label. A missing status reads as
``New``.
"""

import re
from dataclasses import dataclass
from enum import Enum


class LeadStatus(str, Enum):
    NEW = "New"
    OPEN = "Open"
    FOLLOW_UP = "Follow Up"
    ACCEPTED = "Accepted"
    OVERDUE = "Overdue"
    REJECTED = "Rejected"
    CLOSED = "Closed"
    IN_REVIEW = "In Review"
    HOTKEY_REQUEST = "Hotkey Request"
    HOTKEYED = "Hotkeyed"
    CFA_SENT = "CFA Sent"
    CFA_RECEIVED = "CFA Received"
    NO_ANSWER = "No Answer"
    MORE_INFO_REQUIRED = "More Information Required"
    CUSTOM = "custom"


DEFAULT_STATUS = LeadStatus.NEW

STATUS_OPTIONS = [status.value for status in LeadStatus if status is not LeadStatus.CUSTOM]

TERMINAL_STATUSES = frozenset({LeadStatus.ACCEPTED, LeadStatus.CLOSED, LeadStatus.REJECTED})

_SEPARATORS = re.compile(r"[\s_\-]+")

_ALIASES = {
    "followup": LeadStatus.FOLLOW_UP,
    "reject": LeadStatus.REJECTED,
    "more info required": LeadStatus.MORE_INFO_REQUIRED,
}


def _fold(label: str) -> str:
    return _SEPARATORS.sub(" ", label).strip().lower()


_LOOKUP = {_fold(status.value): status for status in LeadStatus if status is not LeadStatus.CUSTOM}
_LOOKUP.update(_ALIASES)


@dataclass(frozen=True)
class StatusValue:
    kind: LeadStatus
    raw: str

    @property
    def label(self) -> str:
        if self.kind is LeadStatus.CUSTOM:
            return self.raw
        return self.kind.value

    @property
    def is_custom(self) -> bool:
        return self.kind is LeadStatus.CUSTOM


def parse_status(raw) -> StatusValue:
    if raw is None:
        return StatusValue(DEFAULT_STATUS, DEFAULT_STATUS.value)
    if isinstance(raw, LeadStatus) and raw is not LeadStatus.CUSTOM:
        return StatusValue(raw, raw.value)
    text = str(raw).strip()
    if not text:
        return StatusValue(DEFAULT_STATUS, DEFAULT_STATUS.value)
    kind = _LOOKUP.get(_fold(text))
    if kind is None:
        return StatusValue(LeadStatus.CUSTOM, text)
    return StatusValue(kind, text)


def canonical_label(raw) -> str:
    """Label to store: known statuses are normalised, custom ones kept as typed."""
    return parse_status(raw).label


def is_accepted(raw) -> bool:
    return parse_status(raw).kind is LeadStatus.ACCEPTED


def is_follow_up(raw) -> bool:
    return parse_status(raw).kind is LeadStatus.FOLLOW_UP


def is_terminal(raw) -> bool:
    return parse_status(raw).kind in TERMINAL_STATUSES
