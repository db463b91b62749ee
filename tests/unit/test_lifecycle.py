"""Unit tests for order status transitions"""

import pytest
from shop_gateway.domain.lifecycle import can_transition, ensure_transition, triggers_settlement
from shop_gateway.domain.models import OrderStatus
from shop_gateway.domain.exceptions import InvalidOrderStateError


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.DRAFT, OrderStatus.PENDING),
        (OrderStatus.PENDING, OrderStatus.DELIVERED),
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.DRAFT, OrderStatus.DELIVERED),
        (OrderStatus.DELIVERED, OrderStatus.PENDING),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.DELIVERED),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidOrderStateError):
        ensure_transition(current, target)


def test_only_delivery_of_pending_settles():
    assert triggers_settlement(OrderStatus.PENDING, OrderStatus.DELIVERED)
    assert not triggers_settlement(OrderStatus.PENDING, OrderStatus.CANCELLED)
    assert not triggers_settlement(OrderStatus.DRAFT, OrderStatus.PENDING)
