# backend/rentmarket/domain/inquiry_states.py
from __future__ import annotations

import enum

# -----------------------------------------------------------------------------
# Inquiry lifecycle
# -----------------------------------------------------------------------------
#   pending -> replied -> {interested, not_interested, closed}
#
# pending is only entered by creation (or an explicit set_status).
# Sink states are entered only by an explicit set_status, never by a reply.
# Whether a reply may pull an inquiry out of a sink state is a setting.
# -----------------------------------------------------------------------------


class InquiryStatus(str, enum.Enum):
    PENDING = "pending"
    REPLIED = "replied"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    CLOSED = "closed"


ACTIVE_STATUSES: frozenset[str] = frozenset({InquiryStatus.PENDING.value, InquiryStatus.REPLIED.value})
SINK_STATUSES: frozenset[str] = frozenset(
    {InquiryStatus.INTERESTED.value, InquiryStatus.NOT_INTERESTED.value, InquiryStatus.CLOSED.value}
)
ALL_STATUSES: tuple[str, ...] = tuple(s.value for s in InquiryStatus)


def is_active(status: str) -> bool:
    return str(status) in ACTIVE_STATUSES


def is_sink(status: str) -> bool:
    return str(status) in SINK_STATUSES


def status_after_reply(current: str, *, reopen: bool) -> str | None:
    """
    Status an inquiry takes when either party appends a reply.

    Returns None when the reply must be refused (sink state, reopen disabled).
    """
    if is_sink(current) and not reopen:
        return None
    return InquiryStatus.REPLIED.value


def normalize_status(value: str) -> str:
    """
    Map user input onto a known status; raises ValueError otherwise.
    'responded' is accepted as a legacy alias of 'replied'.
    """
    v = (value or "").strip().lower()
    if v == "responded":
        v = InquiryStatus.REPLIED.value
    if v not in ALL_STATUSES:
        raise ValueError(f"unknown inquiry status: {value!r}")
    return v
