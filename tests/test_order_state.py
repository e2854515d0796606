from __future__ import annotations

import itertools

import pytest

from rawneeded_client_sdk.exceptions import PreconditionFailedError
from rawneeded_client_sdk.models_orders import LineStatus, Order, OrderLine, OrderStatus, SupplierResponse
from rawneeded_client_sdk.order_state import (
    approve_line,
    cancel_order,
    derive_order_status,
    order_action_availability,
    respond_to_line,
    with_lines,
)


def _line(line_id: str, status: str) -> OrderLine:
    return OrderLine.model_validate(
        {
            "id": line_id,
            "orderId": "o-1",
            "supplierId": f"s-{line_id}",
            "productId": f"p-{line_id}",
            "quantity": 2,
            "status": status,
        }
    )


def _order(*statuses: str, status: str | None = None) -> Order:
    lines = [_line(f"l{index}", value) for index, value in enumerate(statuses, start=1)]
    order = Order.model_validate({"id": "o-1", "orderNumber": "RFQ-1", "status": status or "NEW"})
    return with_lines(order, lines) if lines else order


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        (["PENDING"], OrderStatus.NEW),
        (["PENDING", "PENDING"], OrderStatus.NEW),
        (["RESPONDED", "PENDING"], OrderStatus.NEGOTIATING),
        (["RESPONDED", "RESPONDED"], OrderStatus.NEGOTIATING),
        (["RESPONDED", "APPROVED"], OrderStatus.UNDER_CONFIRMATION),
        (["APPROVED", "PENDING"], OrderStatus.UNDER_CONFIRMATION),
        (["APPROVED", "APPROVED"], OrderStatus.COMPLETED),
        (["APPROVED", "REJECTED"], OrderStatus.COMPLETED),
        (["REJECTED", "REJECTED"], OrderStatus.CANCELLED),
        (["PENDING", "REJECTED"], OrderStatus.NEGOTIATING),
    ],
)
def test_derive_order_status(statuses, expected) -> None:
    assert derive_order_status([_line(str(i), s) for i, s in enumerate(statuses)]) is expected


def test_responded_and_approved_lines_are_under_confirmation() -> None:
    assert _order("RESPONDED", "APPROVED").status is OrderStatus.UNDER_CONFIRMATION


@pytest.mark.parametrize("statuses", list(itertools.product([s.value for s in LineStatus], repeat=3)))
def test_derivation_is_deterministic(statuses) -> None:
    lines = [_line(str(i), s) for i, s in enumerate(statuses)]
    assert derive_order_status(lines) is derive_order_status(list(lines))


def test_status_from_server_is_replaced_by_line_projection() -> None:
    order = Order.model_validate({"id": "o-1", "status": "new"})
    assert order.status is OrderStatus.NEW
    updated = with_lines(order, [_line("l1", "APPROVED")])
    assert updated.status is OrderStatus.COMPLETED
    assert updated.number_of_lines == 1


def test_approve_responded_line() -> None:
    order = _order("RESPONDED", "PENDING")
    updated = approve_line(order, "l1")
    assert updated.line("l1").status is LineStatus.APPROVED
    assert updated.status is OrderStatus.UNDER_CONFIRMATION
    assert order.line("l1").status is LineStatus.RESPONDED


def test_approving_last_open_line_completes_order() -> None:
    updated = approve_line(_order("APPROVED", "RESPONDED"), "l2")
    assert updated.status is OrderStatus.COMPLETED


def test_second_approval_is_a_no_op() -> None:
    order = approve_line(_order("RESPONDED"), "l1")
    assert order.status is OrderStatus.COMPLETED
    again = approve_line(order, "l1")
    assert again is order
    assert again.line("l1") == order.line("l1")


@pytest.mark.parametrize("status", ["PENDING", "REJECTED"])
def test_approve_requires_responded_line(status) -> None:
    order = _order(status, "RESPONDED")
    with pytest.raises(PreconditionFailedError) as exc:
        approve_line(order, "l1")
    assert exc.value.code == "LINE_NOT_RESPONDED"


def test_approve_unknown_line_fails() -> None:
    with pytest.raises(PreconditionFailedError) as exc:
        approve_line(_order("RESPONDED"), "missing")
    assert exc.value.code == "LINE_NOT_FOUND"


@pytest.mark.parametrize("statuses", [("PENDING",), ("RESPONDED", "PENDING")])
def test_cancel_new_or_negotiating_order(statuses) -> None:
    cancelled = cancel_order(_order(*statuses))
    assert cancelled.status is OrderStatus.CANCELLED
    assert {line.status for line in cancelled.lines} == {LineStatus.REJECTED}
    assert derive_order_status(cancelled.lines) is OrderStatus.CANCELLED


def test_cancel_completed_order_fails_without_changes() -> None:
    order = _order("APPROVED", "APPROVED")
    snapshot = order.model_dump()
    with pytest.raises(PreconditionFailedError) as exc:
        cancel_order(order)
    assert exc.value.code == "ORDER_NOT_CANCELLABLE"
    assert order.model_dump() == snapshot


def test_cancel_uses_server_status_when_lines_are_not_loaded() -> None:
    completed = Order.model_validate({"id": "o-9", "status": "COMPLETED"})
    with pytest.raises(PreconditionFailedError):
        cancel_order(completed)
    assert cancel_order(Order.model_validate({"id": "o-8", "status": "NEGOTIATING"})).status is OrderStatus.CANCELLED


def test_cancel_under_confirmation_fails() -> None:
    with pytest.raises(PreconditionFailedError):
        cancel_order(_order("APPROVED", "RESPONDED"))


def test_closed_order_lines_are_immutable() -> None:
    cancelled = cancel_order(_order("RESPONDED", "PENDING"))
    quote = SupplierResponse(price=10, shipping_cost=2)
    with pytest.raises(PreconditionFailedError) as exc:
        respond_to_line(cancelled, "l2", quote)
    assert exc.value.code == "ORDER_CLOSED"


def test_supplier_response_moves_line_to_responded() -> None:
    quote = SupplierResponse.model_validate(
        {"price": 12.5, "shippingCost": 3, "estimatedDelivery": "5 days", "availableQuantity": 4}
    )
    updated = respond_to_line(_order("PENDING", "PENDING"), "l1", quote)
    line = updated.line("l1")
    assert line.status is LineStatus.RESPONDED
    assert line.supplier_response.price == 12.5
    assert updated.status is OrderStatus.NEGOTIATING

    revised = respond_to_line(updated, "l1", quote.model_copy(update={"price": 11.0}))
    assert revised.line("l1").supplier_response.price == 11.0


def test_supplier_cannot_respond_to_approved_line() -> None:
    with pytest.raises(PreconditionFailedError) as exc:
        respond_to_line(_order("APPROVED", "PENDING"), "l1", SupplierResponse(price=1))
    assert exc.value.code == "LINE_NOT_OPEN"


def test_action_availability() -> None:
    negotiating = order_action_availability(_order("RESPONDED", "PENDING"))
    assert negotiating.can_cancel is True
    assert negotiating.can_approve_line("l1") is True
    assert negotiating.can_approve_line("l2") is False

    confirming = order_action_availability(_order("APPROVED", "RESPONDED"))
    assert confirming.can_cancel is False
    assert confirming.can_approve_line("l2") is True

    done = order_action_availability(_order("APPROVED"))
    assert done.can_cancel is False
    assert done.approvable_line_ids == frozenset()
