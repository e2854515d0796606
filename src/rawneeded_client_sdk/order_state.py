from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .exceptions import precondition_failed
from .models_orders import LineStatus, Order, OrderLine, OrderStatus, SupplierResponse

CANCELLABLE_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.NEGOTIATING})


def derive_order_status(lines: Sequence[OrderLine]) -> OrderStatus:
    """Project the order status from its lines alone.

    A cancelled order has every line REJECTED, so CANCELLED is derivable too.
    An order whose lines are not loaded yet reads as NEW.
    """
    statuses = [line.status for line in lines]
    if not statuses:
        return OrderStatus.NEW
    if all(status is LineStatus.REJECTED for status in statuses):
        return OrderStatus.CANCELLED
    open_count = sum(1 for status in statuses if status.is_open)
    if open_count == 0:
        return OrderStatus.COMPLETED
    if all(status is LineStatus.PENDING for status in statuses):
        return OrderStatus.NEW
    if LineStatus.APPROVED in statuses:
        return OrderStatus.UNDER_CONFIRMATION
    return OrderStatus.NEGOTIATING


def with_lines(order: Order, lines: Iterable[OrderLine]) -> Order:
    """Attach freshly fetched lines and re-derive the order status from them."""
    line_list = list(lines)
    if not line_list:
        return order.model_copy(update={"lines": []})
    return order.model_copy(
        update={
            "lines": line_list,
            "status": derive_order_status(line_list),
            "number_of_lines": len(line_list),
        }
    )


def current_status(order: Order) -> OrderStatus:
    if order.lines:
        return derive_order_status(order.lines)
    return order.status


def _replace_line(order: Order, updated: OrderLine) -> Order:
    lines = [updated if line.id == updated.id else line for line in order.lines]
    return order.model_copy(update={"lines": lines, "status": derive_order_status(lines)})


def _require_line(order: Order, line_id: str) -> OrderLine:
    line = order.line(line_id)
    if line is None:
        raise precondition_failed("LINE_NOT_FOUND", "Line does not belong to this order", line_id=line_id)
    return line


def approve_line(order: Order, line_id: str) -> Order:
    """Move a RESPONDED line to APPROVED.

    Approving a line that is already APPROVED returns the order unchanged.
    """
    line = _require_line(order, line_id)
    if line.status is LineStatus.APPROVED:
        return order
    status = current_status(order)
    if status.is_terminal:
        raise precondition_failed(
            "ORDER_CLOSED", "Lines of a closed order cannot change", order_id=order.id, status=status.value
        )
    if line.status is not LineStatus.RESPONDED:
        raise precondition_failed(
            "LINE_NOT_RESPONDED",
            "Only a line with a supplier response can be approved",
            line_id=line_id,
            status=line.status.value,
        )
    return _replace_line(order, line.model_copy(update={"status": LineStatus.APPROVED}))


def cancel_order(order: Order) -> Order:
    status = current_status(order)
    if status not in CANCELLABLE_STATUSES:
        raise precondition_failed(
            "ORDER_NOT_CANCELLABLE",
            "Only new or negotiating orders can be cancelled",
            order_id=order.id,
            status=status.value,
        )
    lines = [line.model_copy(update={"status": LineStatus.REJECTED}) for line in order.lines]
    return order.model_copy(update={"lines": lines, "status": OrderStatus.CANCELLED})


def respond_to_line(order: Order, line_id: str, response: SupplierResponse) -> Order:
    line = _require_line(order, line_id)
    status = current_status(order)
    if status.is_terminal:
        raise precondition_failed(
            "ORDER_CLOSED", "Lines of a closed order cannot change", order_id=order.id, status=status.value
        )
    if not line.status.is_open:
        raise precondition_failed(
            "LINE_NOT_OPEN",
            "Only pending or responded lines accept a supplier response",
            line_id=line_id,
            status=line.status.value,
        )
    return _replace_line(
        order, line.model_copy(update={"status": LineStatus.RESPONDED, "supplier_response": response})
    )


@dataclass(frozen=True)
class OrderActionAvailability:
    can_cancel: bool
    approvable_line_ids: frozenset[str]

    def can_approve_line(self, line: OrderLine | str) -> bool:
        line_id = line if isinstance(line, str) else line.id
        return line_id in self.approvable_line_ids


def order_action_availability(order: Order) -> OrderActionAvailability:
    status = current_status(order)
    if status.is_terminal:
        return OrderActionAvailability(can_cancel=False, approvable_line_ids=frozenset())
    return OrderActionAvailability(
        can_cancel=status in CANCELLABLE_STATUSES,
        approvable_line_ids=frozenset(line.id for line in order.lines if line.status is LineStatus.RESPONDED),
    )
