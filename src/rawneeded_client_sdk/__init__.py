from .access_control import CapabilitySet, NavigationItem, navigation_items, owner_equivalent, resolve
from .auth_store import AuthStore, PreferenceStore
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    ConflictingSessionError,
    NetworkOrServerError,
    NotFoundError,
    PreconditionFailedError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .models import (
    Actor,
    PlanFeature,
    Role,
    SessionPayloadError,
    Subscription,
    is_active_subscription,
    parse_login_payload,
)
from .models_cart import CartAggregate, CartItem
from .models_orders import LineStatus, Order, OrderLine, OrderStatus, SupplierResponse
from .optimistic import OptimisticCell
from .order_state import approve_line, cancel_order, derive_order_status, order_action_availability
from .route_authorizer import RouteDecision, RouteOutcome, authorize
from .session import SessionStore
from .tracing import TraceContext

__version__ = "0.1.0"

__all__ = [
    "Actor",
    "ApiError",
    "AuthStore",
    "CapabilitySet",
    "CartAggregate",
    "CartItem",
    "ClientConfig",
    "ConfigError",
    "ConflictingSessionError",
    "HttpClient",
    "LineStatus",
    "NavigationItem",
    "NetworkOrServerError",
    "NotFoundError",
    "OptimisticCell",
    "Order",
    "OrderLine",
    "OrderStatus",
    "PlanFeature",
    "PreconditionFailedError",
    "PreferenceStore",
    "Role",
    "RouteDecision",
    "RouteOutcome",
    "SessionPayloadError",
    "SessionStore",
    "Subscription",
    "SupplierResponse",
    "TraceContext",
    "UnauthenticatedError",
    "UnauthorizedError",
    "ValidationError",
    "approve_line",
    "authorize",
    "cancel_order",
    "derive_order_status",
    "is_active_subscription",
    "load_config",
    "navigation_items",
    "order_action_availability",
    "owner_equivalent",
    "parse_login_payload",
    "resolve",
]
