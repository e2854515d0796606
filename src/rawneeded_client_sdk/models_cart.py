from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import precondition_failed


class CartItem(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    product_id: str = Field(alias="id")
    supplier_id: str = Field(alias="supplierId")
    supplier_name: Optional[str] = Field(default=None, alias="supplierName")
    name: str = ""
    origin: Optional[str] = None
    in_stock: bool = Field(default=True, alias="inStock")
    quantity: int = 1
    image: Optional[str] = None

    @field_validator("product_id", "supplier_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        if value is None or not str(value).strip():
            raise ValueError("id is required")
        return str(value)

    @field_validator("quantity")
    @classmethod
    def _positive_quantity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("quantity must be >= 1")
        return value

    def to_rfq_item(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "origin": self.origin,
            "supplierId": self.supplier_id,
            "supplierName": self.supplier_name,
            "inStock": self.in_stock,
            "quantity": self.quantity,
            "image": self.image,
        }


class CartAggregate(BaseModel):
    """Buyer's pending items, keyed by product id.

    Operations return a new aggregate so a caller can keep the previous value
    as a rollback snapshot.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: str
    items: List[CartItem] = Field(default_factory=list)
    dirty: bool = False

    @field_validator("items")
    @classmethod
    def _unique_products(cls, items: List[CartItem]) -> List[CartItem]:
        seen: set[str] = set()
        for item in items:
            if item.product_id in seen:
                raise ValueError(f"duplicate cart product: {item.product_id}")
            seen.add(item.product_id)
        return items

    @classmethod
    def from_payload(cls, owner_id: str, payload: Any) -> "CartAggregate":
        raw_items = payload.get("items") if isinstance(payload, dict) else None
        return cls(owner_id=owner_id, items=[CartItem.model_validate(item) for item in raw_items or []])

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def get(self, product_id: str) -> CartItem | None:
        return next((item for item in self.items if item.product_id == product_id), None)

    def grouped_by_supplier(self) -> Dict[str, List[CartItem]]:
        groups: Dict[str, List[CartItem]] = {}
        for item in self.items:
            groups.setdefault(item.supplier_id, []).append(item)
        return groups

    def with_item(self, item: CartItem) -> "CartAggregate":
        existing = self.get(item.product_id)
        if existing is None:
            return self.model_copy(update={"items": [*self.items, item]})
        if existing.supplier_id != item.supplier_id:
            raise precondition_failed(
                "SUPPLIER_CHANGED",
                "Remove the item before adding it from another supplier",
                product_id=item.product_id,
            )
        return self.with_quantity(item.product_id, item.quantity)

    def with_quantity(self, product_id: str, quantity: int) -> "CartAggregate":
        if quantity < 1:
            raise precondition_failed("INVALID_QUANTITY", "Quantity must be at least 1", quantity=quantity)
        if self.get(product_id) is None:
            raise precondition_failed("ITEM_NOT_FOUND", "Product is not in the cart", product_id=product_id)
        items = [
            item.model_copy(update={"quantity": quantity}) if item.product_id == product_id else item
            for item in self.items
        ]
        return self.model_copy(update={"items": items})

    def without(self, product_id: str) -> "CartAggregate":
        return self.model_copy(update={"items": [item for item in self.items if item.product_id != product_id]})

    def cleared(self, *, dirty: bool = False) -> "CartAggregate":
        return self.model_copy(update={"items": [], "dirty": dirty})

    def mark_dirty(self) -> "CartAggregate":
        return self.model_copy(update={"dirty": True})


class CheckoutPayload(BaseModel):
    user_id: str = Field(alias="userId")
    items: List[Dict[str, Any]]

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_cart(cls, cart: CartAggregate) -> "CheckoutPayload":
        # Items are ordered supplier by supplier; the server still creates one line per item.
        groups = cart.grouped_by_supplier()
        items = [item.to_rfq_item() for supplier_items in groups.values() for item in supplier_items]
        return cls(user_id=cart.owner_id, items=items)
