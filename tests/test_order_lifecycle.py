"""
Order status state machine
"""
import pytest

from pizzadesk.core.exceptions import InvalidTransition
from pizzadesk.database.models import NotificationEvent, OrderStatus, OrderType
from pizzadesk.services.order_lifecycle import (
    ensure_fits_flow, event_for_status, next_status, validate_transition
)

S = OrderStatus


@pytest.mark.parametrize("current, expected", [
    (S.RECEIVED, S.PREPARING),
    (S.PREPARING, S.READY),
    (S.READY, S.OUT_FOR_DELIVERY),
    (S.OUT_FOR_DELIVERY, S.DELIVERED),
])
def test_delivery_flow(current, expected):
    assert next_status(current, OrderType.DELIVERY) == expected


@pytest.mark.parametrize("current, expected", [
    (S.RECEIVED, S.PREPARING),
    (S.PREPARING, S.READY),
    (S.READY, S.DELIVERED),
])
def test_pickup_flow_skips_out_for_delivery(current, expected):
    assert next_status(current, OrderType.PICKUP) == expected


@pytest.mark.parametrize("terminal", [S.DELIVERED, S.CANCELLED, S.ARCHIVED])
@pytest.mark.parametrize("order_type", list(OrderType))
def test_terminal_orders_cannot_advance(terminal, order_type):
    with pytest.raises(InvalidTransition):
        next_status(terminal, order_type)


def test_pickup_order_out_for_delivery_cannot_advance():
    with pytest.raises(InvalidTransition):
        next_status(S.OUT_FOR_DELIVERY, OrderType.PICKUP)


def test_cancel_allowed_from_any_active_status():
    for status in (S.RECEIVED, S.PREPARING, S.READY, S.OUT_FOR_DELIVERY):
        validate_transition(status, S.CANCELLED, OrderType.DELIVERY)


def test_cancel_rejected_once_terminal():
    with pytest.raises(InvalidTransition):
        validate_transition(S.DELIVERED, S.CANCELLED, OrderType.PICKUP)


def test_skipping_a_step_is_rejected():
    with pytest.raises(InvalidTransition):
        validate_transition(S.RECEIVED, S.READY, OrderType.PICKUP)


def test_archiving_is_not_a_manual_transition():
    with pytest.raises(InvalidTransition):
        validate_transition(S.READY, S.ARCHIVED, OrderType.PICKUP)


def test_status_events():
    assert event_for_status(S.READY) == NotificationEvent.ORDER_READY
    assert event_for_status(S.DELIVERED) == NotificationEvent.ORDER_DELIVERED
    assert event_for_status(S.CANCELLED) == NotificationEvent.ORDER_CANCELLED
    assert event_for_status(S.PREPARING) is None
    assert event_for_status(S.OUT_FOR_DELIVERY) is None


@pytest.mark.parametrize("current", [S.RECEIVED, S.PREPARING, S.READY])
def test_switching_to_pickup_before_dispatch_is_allowed(current):
    ensure_fits_flow(current, OrderType.PICKUP)


def test_switching_to_pickup_while_out_for_delivery_is_refused():
    with pytest.raises(InvalidTransition):
        ensure_fits_flow(S.OUT_FOR_DELIVERY, OrderType.PICKUP)
