from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping

from ..models_cart import CheckoutPayload
from ..models_orders import OfferPage, OrderLine, OrderMessage, OrderPage, SupplierResponse
from .base import BaseClient, page_params


def _order_id_from(data: Any) -> str | None:
    """Order id from a create-RFQ body; ``None`` when the server echoes no id."""
    if isinstance(data, (str, int)) and not isinstance(data, bool):
        return str(data).strip() or None
    if isinstance(data, dict):
        for key in ("id", "orderId", "rfqId"):
            if data.get(key) is not None:
                return str(data[key])
    return None


def _lines_from(data: Any) -> List[OrderLine]:
    if isinstance(data, dict):
        data = data.get("content") or data.get("lines") or []
    if not isinstance(data, list):
        raise ValueError("Expected order lines response to be a JSON array")
    return [OrderLine.model_validate(item) for item in data]


@dataclass
class OrdersClient(BaseClient):
    def create_rfq(self, payload: CheckoutPayload) -> str | None:
        data = self._request(
            "POST",
            "/api/v1/rfq",
            json_body=payload.model_dump(by_alias=True, mode="json"),
            module="orders",
            operation="create_rfq",
        )
        return _order_id_from(data)

    def list_orders(self, page: int = 0, size: int = 10, status: str | None = None) -> OrderPage:
        data = self._request(
            "GET", "/api/v1/rfq/by-creator", params=page_params(page, size, status), module="orders", operation="list"
        )
        if not isinstance(data, dict):
            raise ValueError("Expected list orders response to be a JSON object")
        return OrderPage.model_validate(data)

    def list_lines(self, order_id: str) -> List[OrderLine]:
        data = self._request("GET", f"/api/v1/rfq/{order_id}/lines", module="orders", operation="lines")
        return _lines_from(data)

    def approve_line(self, line_id: str) -> Any:
        return self._request(
            "POST", f"/api/v1/rfq/line/{line_id}/approve", json_body={}, module="orders", operation="approve_line"
        )

    def cancel_order(self, order_id: str) -> Any:
        return self._request("DELETE", f"/api/v1/rfq/{order_id}", module="orders", operation="cancel")

    def list_supplier_offers(self, page: int = 0, size: int = 10, status: str | None = None) -> OfferPage:
        data = self._request(
            "GET",
            "/api/v1/rfq/supplier/offers",
            params=page_params(page, size, status),
            module="orders",
            operation="supplier_offers",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected supplier offers response to be a JSON object")
        return OfferPage.model_validate(data)

    def respond_to_line(self, line_id: str, response: SupplierResponse) -> Any:
        return self._request(
            "POST",
            f"/api/v1/rfq/line/{line_id}/respond",
            json_body=response.model_dump(by_alias=True, mode="json", exclude_none=True),
            module="orders",
            operation="respond_line",
        )

    def list_messages(self, order_id: str) -> List[OrderMessage]:
        data = self._request("GET", f"/api/v1/orders/{order_id}/messages", module="orders", operation="messages")
        if not isinstance(data, list):
            raise ValueError("Expected order messages response to be a JSON array")
        return [OrderMessage.model_validate(item) for item in data]

    def post_message(self, order_id: str, message: str, image: str | None = None) -> OrderMessage:
        body: Mapping[str, Any] = {"message": message, "image": image}
        data = self._request(
            "POST",
            f"/api/v1/orders/{order_id}/messages",
            json_body=dict(body),
            module="orders",
            operation="post_message",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected post message response to be a JSON object")
        return OrderMessage.model_validate(data)
