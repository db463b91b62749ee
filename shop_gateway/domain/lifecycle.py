"""Order status transitions"""

from typing import Dict, FrozenSet
from shop_gateway.domain.models import OrderStatus
from shop_gateway.domain.exceptions import InvalidOrderStateError

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.PENDING}),
    OrderStatus.PENDING: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise InvalidOrderStateError unless current -> target is allowed"""
    if not can_transition(current, target):
        raise InvalidOrderStateError(
            f"Cannot move order from {OrderStatus(current).value} to {OrderStatus(target).value}"
        )


def triggers_settlement(current: OrderStatus, target: OrderStatus) -> bool:
    """Only delivering a pending order settles payment"""
    return OrderStatus(current) == OrderStatus.PENDING and OrderStatus(target) == OrderStatus.DELIVERED
