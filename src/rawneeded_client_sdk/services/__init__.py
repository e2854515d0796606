from .auth_service import AuthService
from .cart_service import CartService
from .checkout import CheckoutOrchestrator, CheckoutResult
from .notifications import BadgeSurface, NotificationSyncService, ReadBroadcast
from .orders_service import OrdersService

__all__ = [
    "AuthService",
    "BadgeSurface",
    "CartService",
    "CheckoutOrchestrator",
    "CheckoutResult",
    "NotificationSyncService",
    "OrdersService",
    "ReadBroadcast",
]
