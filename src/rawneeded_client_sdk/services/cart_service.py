from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..exceptions import ApiError, precondition_failed
from ..models_cart import CartAggregate, CartItem
from ..optimistic import OptimisticCell
from ..session import SessionStore

logger = logging.getLogger(__name__)

CART_SCOPE = "cart"


@dataclass
class CartService:
    """Cart of the signed-in buyer. Never persisted; ``refresh`` re-reads it."""

    session: SessionStore
    _cell: OptimisticCell[CartAggregate] | None = field(default=None, init=False, repr=False)

    @property
    def owner_id(self) -> str:
        return self.session.require_actor().id

    @property
    def cart(self) -> CartAggregate:
        if self._cell is None:
            return CartAggregate(owner_id=self.owner_id)
        return self._cell.value

    def _set(self, cart: CartAggregate) -> CartAggregate:
        if self._cell is None:
            self._cell = OptimisticCell(cart, name="cart")
        else:
            self._cell.set(cart)
        return cart

    def refresh(self) -> CartAggregate:
        if self.cart.dirty and not self.retry_pending_clear():
            # The remote cart still holds items that were already ordered.
            return self.cart
        return self._set(self.session.cart_client().get_cart(self.owner_id, scope_key=CART_SCOPE))

    def add_item(self, product_id: str, quantity: int = 1, special_offer_id: str | None = None) -> CartAggregate:
        if quantity < 1:
            raise precondition_failed("INVALID_QUANTITY", "Quantity must be at least 1", quantity=quantity)
        self.session.cart_client().add_item(self.owner_id, product_id, quantity, special_offer_id)
        return self.refresh()

    def put_item(self, item: CartItem) -> CartAggregate:
        """Add a fully described item, enforcing the fixed supplier per product."""
        updated = self.cart.with_item(item)
        self.session.cart_client().add_item(self.owner_id, item.product_id, item.quantity)
        return self._set(updated)

    def update_quantity(self, product_id: str, quantity: int) -> CartAggregate:
        if quantity < 1:
            raise precondition_failed("INVALID_QUANTITY", "Quantity must be at least 1", quantity=quantity)
        cell = self._require_cell()
        client = self.session.cart_client()
        cell.mutate(
            lambda cart: cart.with_quantity(product_id, quantity),
            lambda _cart: client.update_quantity(self.owner_id, product_id, quantity),
        )
        return cell.value

    def remove_item(self, product_id: str) -> CartAggregate:
        cell = self._require_cell()
        client = self.session.cart_client()
        cell.mutate(
            lambda cart: cart.without(product_id),
            lambda _cart: client.remove_item(self.owner_id, product_id),
        )
        return cell.value

    def clear(self) -> CartAggregate:
        self.session.cart_client().clear(self.owner_id)
        return self._set(self.cart.cleared())

    def mark_checked_out(self, *, remote_cleared: bool) -> CartAggregate:
        return self._set(self.cart.cleared(dirty=not remote_cleared))

    def retry_pending_clear(self) -> bool:
        if not self.cart.dirty:
            return True
        try:
            self.session.cart_client().clear(self.owner_id)
        except ApiError as exc:
            logger.warning("cart_clear_retry_failed", extra={"code": exc.code, "trace_id": exc.trace_id})
            return False
        self._set(self.cart.cleared())
        logger.info("cart_clear_retried", extra={"owner_id": self.owner_id})
        return True

    def discard(self) -> None:
        """Drop local state and any in-flight cart read, e.g. on logout."""
        self._cell = None
        self.session.http().switch_scope(CART_SCOPE)

    def _require_cell(self) -> OptimisticCell[CartAggregate]:
        if self._cell is None:
            cart = self.session.cart_client().get_cart(self.owner_id, scope_key=CART_SCOPE)
            self._cell = OptimisticCell(cart, name="cart")
        return self._cell
