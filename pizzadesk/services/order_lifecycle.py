"""
Order status state machine

    Received -> Preparing -> Ready -> OutForDelivery -> Delivered   (delivery)
    Received -> Preparing -> Ready -> Delivered                     (pickup)
    any non-terminal -> Cancelled
    any non-archived -> Archived  (bulk archive only)

Delivered, Cancelled and Archived are terminal.
"""
from typing import Optional

from pizzadesk.core.exceptions import InvalidTransition
from pizzadesk.database.models.notification import NotificationEvent
from pizzadesk.database.models.order import OrderStatus, OrderType

DELIVERY_FLOW = {
    OrderStatus.RECEIVED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
}

PICKUP_FLOW = {
    OrderStatus.RECEIVED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
}

# Entering these statuses notifies staff
STATUS_EVENTS = {
    OrderStatus.READY: NotificationEvent.ORDER_READY,
    OrderStatus.DELIVERED: NotificationEvent.ORDER_DELIVERED,
    OrderStatus.CANCELLED: NotificationEvent.ORDER_CANCELLED,
}


def flow_for(order_type: OrderType) -> dict:
    return DELIVERY_FLOW if order_type == OrderType.DELIVERY else PICKUP_FLOW


def ensure_fits_flow(status: OrderStatus, order_type: OrderType) -> None:
    """An order switching type must be at a status the new flow can still advance from"""
    if not status.is_terminal and status not in flow_for(order_type):
        raise InvalidTransition(f"A {order_type.value} order cannot be at {status.value}")


def ensure_not_terminal(status: OrderStatus) -> None:
    if status.is_terminal:
        raise InvalidTransition(f"Order is already {status.value} and can no longer change")


def next_status(status: OrderStatus, order_type: OrderType) -> OrderStatus:
    """The single status an order advances to"""
    ensure_not_terminal(status)
    following = flow_for(order_type).get(status)
    if following is None:
        raise InvalidTransition(f"A {order_type.value} order cannot advance from {status.value}")
    return following


def validate_transition(current: OrderStatus, target: OrderStatus, order_type: OrderType) -> None:
    """Only the next status of the flow or a cancellation are accepted"""
    ensure_not_terminal(current)
    if target == OrderStatus.CANCELLED:
        return
    if target != next_status(current, order_type):
        raise InvalidTransition(f"Cannot move order from {current.value} to {target.value}")


def event_for_status(status: OrderStatus) -> Optional[NotificationEvent]:
    return STATUS_EVENTS.get(status)
