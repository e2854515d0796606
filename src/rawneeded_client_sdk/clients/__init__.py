from .auth import AuthClient
from .cart_client import CartClient
from .notifications_client import NotificationsClient
from .orders_client import OrdersClient

__all__ = ["AuthClient", "CartClient", "NotificationsClient", "OrdersClient"]
