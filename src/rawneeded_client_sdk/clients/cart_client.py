from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models_cart import CartAggregate
from .base import BaseClient


@dataclass
class CartClient(BaseClient):
    def get_cart(self, user_id: str, *, scope_key: str | None = None) -> CartAggregate:
        data = self._request(
            "GET", f"/api/v1/cart/{user_id}", module="cart", operation="get", scope_key=scope_key
        )
        if data is not None and not isinstance(data, dict):
            raise ValueError("Expected cart response to be a JSON object")
        return CartAggregate.from_payload(user_id, data or {})

    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        special_offer_id: str | None = None,
    ) -> Any:
        params: dict[str, Any] = {"userId": user_id, "productId": product_id, "quantity": quantity}
        if special_offer_id:
            params["specialOfferId"] = special_offer_id
        return self._request(
            "POST", "/api/v1/cart/add-item", params=params, json_body={}, module="cart", operation="add_item"
        )

    def update_quantity(self, user_id: str, product_id: str, quantity: int) -> Any:
        # The portal API sets the quantity of an existing line through add-item.
        return self.add_item(user_id, product_id, quantity)

    def remove_item(self, user_id: str, product_id: str) -> Any:
        return self._request(
            "DELETE",
            "/api/v1/cart/remove-item",
            params={"userId": user_id, "productId": product_id},
            module="cart",
            operation="remove_item",
        )

    def clear(self, user_id: str) -> Any:
        return self._request("DELETE", f"/api/v1/cart/{user_id}", module="cart", operation="clear")
