from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Tuple

from .models import Actor, PlanFeature, Role, Subscription, feature_key, is_active_subscription, normalize_screen

HOME = "/"
SUBSCRIPTION = "/subscription"
PROFILE = "/profile"
SUPPORT = "/support"


@dataclass(frozen=True)
class Screen:
    path: str
    key: str
    label: str


SCREEN_CATALOG: Tuple[Screen, ...] = (
    Screen("/", "dashboard", "Dashboard"),
    Screen("/plans", "plans", "Plans"),
    Screen("/payment-info", "payment_info", "Payment info"),
    Screen("/categories", "categories", "Categories"),
    Screen("/approvals", "approvals", "Approvals"),
    Screen("/users", "users", "Users"),
    Screen("/analytics", "analytics", "Analytics"),
    Screen("/product-search", "product_search", "Product search"),
    Screen("/vendors", "vendors", "Vendors"),
    Screen("/cart", "cart", "Cart"),
    Screen("/orders", "orders", "Orders"),
    Screen("/market-requests", "market_requests", "Market requests"),
    Screen("/products", "products", "Products"),
    Screen("/my-team", "my_team", "My team"),
    Screen("/profile", "profile", "Profile"),
    Screen("/subscription", "subscription", "Subscription"),
    Screen("/support", "support", "Support"),
)

ADMIN_SCREENS: FrozenSet[str] = frozenset(
    {"/", "/plans", "/payment-info", "/categories", "/approvals", "/users", "/analytics", "/market-requests", SUPPORT, PROFILE}
)
CUSTOMER_SCREENS: FrozenSet[str] = frozenset(
    {"/", "/my-team", "/product-search", "/vendors", "/cart", "/orders", "/market-requests", PROFILE, SUBSCRIPTION, SUPPORT}
)
SUPPLIER_SCREENS: FrozenSet[str] = frozenset(
    {"/", "/my-team", "/products", "/orders", "/market-requests", PROFILE, SUBSCRIPTION, SUPPORT}
)
FALLBACK_SCREENS: FrozenSet[str] = frozenset({HOME, SUPPORT, PROFILE})
SUBSCRIPTION_FLOW_SCREENS: FrozenSet[str] = frozenset({SUBSCRIPTION, PROFILE, SUPPORT})
STAFF_BASELINE: FrozenSet[str] = frozenset({HOME, PROFILE, SUPPORT})

_ROLE_SCREENS: dict[Role, FrozenSet[str]] = {
    Role.SUPER_ADMIN: ADMIN_SCREENS,
    Role.ADMIN: ADMIN_SCREENS,
    Role.CUSTOMER_OWNER: CUSTOMER_SCREENS,
    Role.CUSTOMER_STAFF: CUSTOMER_SCREENS,
    Role.SUPPLIER_OWNER: SUPPLIER_SCREENS,
    Role.SUPPLIER_STAFF: SUPPLIER_SCREENS,
}


@dataclass(frozen=True)
class CapabilitySet:
    """What one actor may reach right now.

    ``visible`` is the role whitelist used to build navigation; ``reachable``
    is the subset the actor may actually open. Staff actors see the whole
    role whitelist but can only reach what their allow-list grants.
    """

    role: Role
    reachable: FrozenSet[str]
    visible: FrozenSet[str]
    default_route: str = HOME
    is_restricted_to_subscription_flow: bool = False
    features: FrozenSet[str] = frozenset()
    actor_id: str | None = field(default=None, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return self.actor_id is not None

    def can_reach_screen(self, screen_id: str) -> bool:
        return section_of(screen_id) in self.reachable

    def is_visible(self, screen_id: str) -> bool:
        return section_of(screen_id) in self.visible

    def has_feature(self, feature: PlanFeature | str) -> bool:
        """Plan feature gate; always false outside an active subscription."""
        return feature_key(feature) in self.features


@dataclass(frozen=True)
class NavigationItem:
    path: str
    key: str
    label: str
    disabled: bool


def section_of(path: str) -> str:
    """Normalize a requested path and reduce it to its top-level section."""
    raw = (path or "").strip()
    for separator in ("?", "#"):
        raw = raw.split(separator, 1)[0]
    normalized = normalize_screen(raw) if raw else HOME
    if normalized == HOME:
        return HOME
    return "/" + normalized.lstrip("/").split("/", 1)[0]


def owner_equivalent(actor: Actor) -> Actor:
    """The owner account a staff actor works under.

    Staff sessions normally carry no subscription snapshot; their organization
    passed the subscription gate for them to log in at all.
    """
    if not actor.role.is_staff:
        return actor
    subscription = actor.subscription if actor.subscription is not None else Subscription()
    return actor.model_copy(update={"role": actor.role.owner_equivalent, "subscription": subscription})


def _plan_features(actor: Actor) -> FrozenSet[str]:
    # Only called once the subscription gate has passed.
    if actor.role.is_admin or actor.subscription is None:
        return frozenset()
    return actor.subscription.selected_features


def resolve(actor: Actor | None, now: datetime | None = None) -> CapabilitySet:
    if actor is None:
        return CapabilitySet(role=Role.UNKNOWN, reachable=frozenset(), visible=frozenset())

    role = actor.role
    if role.is_owner and not is_active_subscription(actor.subscription, now):
        return CapabilitySet(
            role=role,
            reachable=SUBSCRIPTION_FLOW_SCREENS,
            visible=SUBSCRIPTION_FLOW_SCREENS,
            default_route=SUBSCRIPTION,
            is_restricted_to_subscription_flow=True,
            actor_id=actor.id,
        )

    whitelist = _ROLE_SCREENS.get(role)
    if whitelist is None:
        return CapabilitySet(role=role, reachable=FALLBACK_SCREENS, visible=FALLBACK_SCREENS, actor_id=actor.id)

    if not role.is_staff:
        return CapabilitySet(
            role=role, reachable=whitelist, visible=whitelist, features=_plan_features(actor), actor_id=actor.id
        )

    granted = whitelist & (actor.allowed_screens | STAFF_BASELINE)
    if actor.subscription is not None and not actor.subscription.is_active(now):
        # Lapsed organization: staff keep only the parts of the subscription flow they were granted.
        restricted = granted & SUBSCRIPTION_FLOW_SCREENS
        return CapabilitySet(
            role=role,
            reachable=restricted,
            visible=SUBSCRIPTION_FLOW_SCREENS,
            default_route=SUBSCRIPTION if SUBSCRIPTION in restricted else PROFILE,
            is_restricted_to_subscription_flow=True,
            actor_id=actor.id,
        )
    return CapabilitySet(
        role=role, reachable=granted, visible=whitelist, features=_plan_features(actor), actor_id=actor.id
    )


def navigation_items(capabilities: CapabilitySet) -> List[NavigationItem]:
    return [
        NavigationItem(
            path=screen.path,
            key=screen.key,
            label=screen.label,
            disabled=screen.path not in capabilities.reachable,
        )
        for screen in SCREEN_CATALOG
        if screen.path in capabilities.visible
    ]
