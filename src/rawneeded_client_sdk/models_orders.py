from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import PageMeta


class OrderStatus(str, Enum):
    NEW = "NEW"
    NEGOTIATING = "NEGOTIATING"
    UNDER_CONFIRMATION = "UNDER_CONFIRMATION"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in {OrderStatus.COMPLETED, OrderStatus.CANCELLED}


class LineStatus(str, Enum):
    PENDING = "PENDING"
    RESPONDED = "RESPONDED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_open(self) -> bool:
        return self in {LineStatus.PENDING, LineStatus.RESPONDED}


def _upper(value: object) -> object:
    if isinstance(value, str):
        return value.strip().upper()
    return value


class SupplierResponse(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    price: float
    shipping_cost: float = Field(default=0.0, alias="shippingCost")
    estimated_delivery: Optional[str] = Field(default=None, alias="estimatedDelivery")
    available_quantity: Optional[int] = Field(default=None, alias="availableQuantity")
    shipping_info: Optional[str] = Field(default=None, alias="shippingInfo")
    responded_at: Optional[datetime] = Field(default=None, alias="respondedAt")

    @field_validator("price", "shipping_cost")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("amounts must be >= 0")
        return value

    @field_validator("available_quantity")
    @classmethod
    def _non_negative_qty(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("availableQuantity must be >= 0")
        return value


class OrderLine(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    order_id: str = Field(alias="orderId")
    supplier_id: str = Field(alias="supplierId")
    supplier_name: Optional[str] = Field(default=None, alias="supplierName")
    product_id: str = Field(alias="productId")
    product_name: Optional[str] = Field(default=None, alias="productName")
    quantity: int = 1
    status: LineStatus = LineStatus.PENDING
    supplier_response: Optional[SupplierResponse] = Field(default=None, alias="supplierResponse")

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        return _upper(value)


class Order(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    creator_id: Optional[str] = Field(default=None, alias="userId")
    status: OrderStatus = OrderStatus.NEW
    number_of_lines: Optional[int] = Field(default=None, alias="numberOfLines")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    lines: List[OrderLine] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        return _upper(value)

    def line(self, line_id: str) -> OrderLine | None:
        return next((item for item in self.lines if item.id == line_id), None)


class OrderPage(PageMeta):
    content: List[Order] = Field(default_factory=list)


class OrderMessage(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    order_id: str = Field(alias="orderId")
    user_id: Optional[str] = Field(default=None, alias="userId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    message: str = ""
    image: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class OfferPage(PageMeta):
    content: List[OrderLine] = Field(default_factory=list)
