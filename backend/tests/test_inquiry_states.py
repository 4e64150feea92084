# backend/tests/test_inquiry_states.py
from __future__ import annotations

import pytest

from rentmarket.domain.inquiry_states import (
    ACTIVE_STATUSES,
    SINK_STATUSES,
    normalize_status,
    status_after_reply,
)


def test_active_and_sink_partition_all_statuses():
    assert ACTIVE_STATUSES == {"pending", "replied"}
    assert SINK_STATUSES == {"interested", "not_interested", "closed"}
    assert not (ACTIVE_STATUSES & SINK_STATUSES)


@pytest.mark.parametrize("current", ["pending", "replied"])
def test_reply_from_active_is_always_replied(current):
    assert status_after_reply(current, reopen=False) == "replied"
    assert status_after_reply(current, reopen=True) == "replied"


@pytest.mark.parametrize("current", ["interested", "not_interested", "closed"])
def test_reply_from_sink_depends_on_reopen(current):
    assert status_after_reply(current, reopen=True) == "replied"
    assert status_after_reply(current, reopen=False) is None


def test_normalize_status():
    assert normalize_status(" Closed ") == "closed"
    assert normalize_status("responded") == "replied"
    with pytest.raises(ValueError):
        normalize_status("archived")
