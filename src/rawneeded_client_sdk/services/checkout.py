from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import ApiError, precondition_failed
from ..models_cart import CartAggregate, CheckoutPayload
from .cart_service import CartService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str | None
    supplier_count: int
    line_count: int
    cart_cleared: bool


@dataclass
class CheckoutOrchestrator:
    """Turns the buyer's cart into one RFQ order.

    Create-RFQ and clear-cart run strictly in sequence. A failed create leaves
    the cart untouched; a failed clear is logged and the cart is flagged dirty
    so ``CartService.retry_pending_clear`` can finish the job later.
    """

    cart_service: CartService

    def finalize(self, cart: CartAggregate | None = None) -> CheckoutResult:
        cart = cart if cart is not None else self.cart_service.cart
        if cart.is_empty:
            raise precondition_failed("EMPTY_CART", "Add at least one item before requesting quotes")

        payload = CheckoutPayload.from_cart(cart)
        session = self.cart_service.session
        supplier_count = len(cart.grouped_by_supplier())
        try:
            order_id = session.orders_client().create_rfq(payload)
        except ApiError as exc:
            logger.warning(
                "checkout_failed",
                extra={"code": exc.code, "trace_id": exc.trace_id, "items": len(cart.items)},
            )
            raise
        logger.info(
            "checkout_order_created",
            extra={"order_id": order_id, "items": len(cart.items), "suppliers": supplier_count},
        )
        if order_id is None:
            # The RFQ was accepted; only its id is unknown until the next orders listing.
            logger.warning("checkout_order_id_missing", extra={"items": len(cart.items)})

        cleared = True
        try:
            session.cart_client().clear(cart.owner_id)
        except ApiError as exc:
            cleared = False
            logger.warning(
                "cart_clear_deferred",
                extra={"order_id": order_id, "code": exc.code, "trace_id": exc.trace_id},
            )
        self.cart_service.mark_checked_out(remote_cleared=cleared)
        return CheckoutResult(
            order_id=order_id,
            supplier_count=supplier_count,
            line_count=len(cart.items),
            cart_cleared=cleared,
        )
