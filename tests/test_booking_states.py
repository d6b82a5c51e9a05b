import pytest

from hotel_api.core.errors import InvalidTransition, ValidationError
from hotel_api.services.booking_states import (
    BOOKING_STATUSES,
    TRANSITIONS,
    can_transition,
    ensure_transition,
    normalize_status,
)


@pytest.mark.parametrize("current,target", [
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "checked_in"),
    ("confirmed", "cancelled"),
    ("checked_in", "checked_out"),
])
def test_allowed_edges(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize("current,target", [
    ("pending", "checked_in"),
    ("pending", "checked_out"),
    ("confirmed", "pending"),
    ("checked_in", "cancelled"),
    ("checked_in", "confirmed"),
    ("checked_out", "checked_in"),
    ("cancelled", "pending"),
    ("cancelled", "confirmed"),
])
def test_rejected_edges(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidTransition):
        ensure_transition(current, target)


def test_nothing_reenters_pending_and_terminals_are_final():
    assert all("pending" not in targets for targets in TRANSITIONS.values())
    assert TRANSITIONS["cancelled"] == frozenset()
    assert TRANSITIONS["checked_out"] == frozenset()
    assert set(TRANSITIONS) == set(BOOKING_STATUSES)


@pytest.mark.parametrize("raw,expected", [
    ("success", "confirmed"),
    ("completed", "checked_out"),
    ("checked-in", "checked_in"),
    (" Cancelled ", "cancelled"),
    ("PENDING", "pending"),
])
def test_status_aliases(raw, expected):
    assert normalize_status(raw) == expected


def test_unknown_status_is_a_validation_error():
    with pytest.raises(ValidationError):
        normalize_status("teleported")
