from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .. import order_state
from ..exceptions import ApiError, precondition_failed
from ..models_orders import OfferPage, Order, OrderLine, OrderMessage, OrderPage, SupplierResponse
from ..optimistic import OptimisticCell
from ..session import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class OrdersService:
    """Buyer and supplier views over RFQ orders.

    Every transition is checked against ``order_state`` before any remote
    call, applied locally, then either reconciled with the refreshed lines or
    rolled back if the collaborator rejects it.
    """

    session: SessionStore
    _orders: Dict[str, OptimisticCell[Order]] = field(default_factory=dict, init=False, repr=False)

    def list_orders(self, page: int = 0, size: int = 10, status: str | None = None) -> OrderPage:
        result = self.session.orders_client().list_orders(page=page, size=size, status=status)
        # Only the current page stays tracked.
        cells = {order.id: self._track(order) for order in result.content}
        self._orders = cells
        return result

    def order(self, order_id: str) -> Order | None:
        cell = self._orders.get(order_id)
        return cell.value if cell else None

    def load_lines(self, order: Order) -> Order:
        lines = self.session.orders_client().list_lines(order.id)
        return self._track(order_state.with_lines(order, lines)).value

    def approve_line(self, order: Order, line_id: str) -> OrderLine:
        cell = self._track(order, keep_loaded=True)
        current = cell.value
        if order_state.approve_line(current, line_id) is current:
            # Already approved: a retried click, nothing to send.
            return _line_of(current, line_id)
        client = self.session.orders_client()
        try:
            cell.mutate(
                lambda value: order_state.approve_line(value, line_id),
                lambda _value: client.approve_line(line_id),
                reconcile=lambda value, _result: self._refreshed(value),
            )
        except ApiError as exc:
            logger.warning("approve_line_failed", extra={"line_id": line_id, "code": exc.code})
            raise
        logger.info("line_approved", extra={"order_id": current.id, "line_id": line_id})
        return _line_of(cell.value, line_id)

    def cancel_order(self, order: Order) -> Order:
        cell = self._track(order, keep_loaded=True)
        order_state.cancel_order(cell.value)
        client = self.session.orders_client()
        try:
            cell.mutate(
                order_state.cancel_order,
                lambda value: client.cancel_order(value.id),
            )
        except ApiError as exc:
            logger.warning("cancel_order_failed", extra={"order_id": order.id, "code": exc.code})
            raise
        logger.info("order_cancelled", extra={"order_id": order.id})
        return cell.value

    def list_supplier_offers(self, page: int = 0, size: int = 10, status: str | None = None) -> OfferPage:
        return self.session.orders_client().list_supplier_offers(page=page, size=size, status=status)

    def respond_to_line(
        self,
        order: Order,
        line_id: str,
        response: SupplierResponse | Mapping[str, Any],
    ) -> OrderLine:
        quote = response if isinstance(response, SupplierResponse) else SupplierResponse.model_validate(response)
        cell = self._track(order, keep_loaded=True)
        order_state.respond_to_line(cell.value, line_id, quote)
        client = self.session.orders_client()
        cell.mutate(
            lambda value: order_state.respond_to_line(value, line_id, quote),
            lambda _value: client.respond_to_line(line_id, quote),
        )
        logger.info("line_responded", extra={"order_id": order.id, "line_id": line_id})
        return _line_of(cell.value, line_id)

    def action_availability(self, order: Order) -> order_state.OrderActionAvailability:
        return order_state.order_action_availability(self.order(order.id) or order)

    def list_messages(self, order_id: str) -> List[OrderMessage]:
        return self.session.orders_client().list_messages(order_id)

    def post_message(self, order_id: str, message: str, image: str | None = None) -> OrderMessage:
        text = message.strip()
        if not text and not image:
            raise ValueError("message or image is required")
        return self.session.orders_client().post_message(order_id, text, image)

    def forget(self) -> None:
        """Drop every tracked order, e.g. when the session ends."""
        self._orders.clear()

    def _refreshed(self, order: Order) -> Order:
        try:
            lines = self.session.orders_client().list_lines(order.id)
        except ApiError as exc:
            # The transition succeeded remotely; keep the local projection until the next load.
            logger.warning("order_refresh_failed", extra={"order_id": order.id, "code": exc.code})
            return order
        return order_state.with_lines(order, lines)

    def _track(self, order: Order, *, keep_loaded: bool = False) -> OptimisticCell[Order]:
        cell = self._orders.get(order.id)
        if cell is None:
            cell = OptimisticCell(order, name=f"order:{order.id}")
            self._orders[order.id] = cell
        elif not (keep_loaded and cell.value.lines and not order.lines):
            cell.set(order)
        return cell


def _line_of(order: Order, line_id: str) -> OrderLine:
    line = order.line(line_id)
    if line is None:
        # A refreshed order may no longer carry the line.
        raise precondition_failed("LINE_NOT_FOUND", "Line does not belong to this order", line_id=line_id)
    return line
