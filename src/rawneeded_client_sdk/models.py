from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    CUSTOMER_OWNER = "CUSTOMER_OWNER"
    CUSTOMER_STAFF = "CUSTOMER_STAFF"
    SUPPLIER_OWNER = "SUPPLIER_OWNER"
    SUPPLIER_STAFF = "SUPPLIER_STAFF"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> "Role":
        normalized = str(value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_admin(self) -> bool:
        return self in {Role.SUPER_ADMIN, Role.ADMIN}

    @property
    def is_owner(self) -> bool:
        return self in {Role.CUSTOMER_OWNER, Role.SUPPLIER_OWNER}

    @property
    def is_staff(self) -> bool:
        return self in {Role.CUSTOMER_STAFF, Role.SUPPLIER_STAFF}

    @property
    def owner_equivalent(self) -> "Role":
        return {
            Role.CUSTOMER_STAFF: Role.CUSTOMER_OWNER,
            Role.SUPPLIER_STAFF: Role.SUPPLIER_OWNER,
        }.get(self, self)


class PlanFeature(str, Enum):
    SUPPLIER_ADVERTISEMENTS = "SUPPLIER_ADVERTISEMENTS"
    SUPPLIER_PRIVATE_ORDERS = "SUPPLIER_PRIVATE_ORDERS"
    SUPPLIER_SPECIAL_OFFERS = "SUPPLIER_SPECIAL_OFFERS"
    SUPPLIER_ADVANCED_REPORTS = "SUPPLIER_ADVANCED_REPORTS"
    CUSTOMER_PRIVATE_ORDERS = "CUSTOMER_PRIVATE_ORDERS"
    CUSTOMER_RAW_MATERIALS_ADVANCE = "CUSTOMER_RAW_MATERIALS_ADVANCE"
    CUSTOMER_VIEW_SUPPLIER_OFFERS = "CUSTOMER_VIEW_SUPPLIER_OFFERS"
    CUSTOMER_ADVANCED_REPORTS = "CUSTOMER_ADVANCED_REPORTS"


def feature_key(feature: PlanFeature | str) -> str:
    if isinstance(feature, PlanFeature):
        return feature.value
    return str(feature).strip().upper()


class SubscriptionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Subscription(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    status: str | None = None
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")
    plan_name: str | None = Field(default=None, alias="planName")
    # Unknown feature keys are kept as plain strings.
    selected_features: frozenset[str] = Field(default_factory=frozenset, alias="selectedFeatures")

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip().upper()
        return text or None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _blank_expiry(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("selected_features", mode="before")
    @classmethod
    def _normalize_features(cls, value: object) -> object:
        if value is None:
            return frozenset()
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("selectedFeatures must be a list of feature keys")
        return frozenset(feature_key(item) for item in value if str(item).strip())

    def is_active(self, now: datetime | None = None) -> bool:
        if self.status is not None and self.status != SubscriptionStatus.APPROVED.value:
            return False
        if self.expiry_date is None:
            return True
        current = _as_utc(now or datetime.now(timezone.utc))
        return _as_utc(self.expiry_date) > current


def is_active_subscription(subscription: Subscription | None, now: datetime | None = None) -> bool:
    """Time-dependent: callers must re-evaluate it on every access decision."""
    return subscription is not None and subscription.is_active(now)


def normalize_screen(value: str) -> str:
    screen = value.strip().lower()
    if not screen.startswith("/"):
        screen = "/" + screen
    if len(screen) > 1:
        screen = screen.rstrip("/")
    return screen


def normalize_screens(value: object) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError("allowedScreens must be a list of paths")
    return frozenset(normalize_screen(str(item)) for item in value if str(item).strip())


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "User"
    email: str | None = None
    role: Role = Role.UNKNOWN
    allowed_screens: frozenset[str] = Field(default_factory=frozenset)
    subscription: Subscription | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> Role:
        return value if isinstance(value, Role) else Role.parse(value)

    @field_validator("allowed_screens", mode="before")
    @classmethod
    def _normalize_screens(cls, value: object) -> frozenset[str]:
        return normalize_screens(value)

    def with_allowed_screens(self, screens: List[str]) -> "Actor":
        return self.model_copy(update={"allowed_screens": normalize_screens(screens)})


class SessionPayloadError(ValueError):
    pass


class LoginRecord(BaseModel):
    """Validated form of the login response; built once at session-load time."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    actor: Actor


def parse_login_payload(payload: Mapping[str, Any] | None) -> LoginRecord:
    if not isinstance(payload, Mapping):
        raise SessionPayloadError("Session record must be a JSON object")
    user_info = payload.get("userInfo")
    if user_info is not None and not isinstance(user_info, Mapping):
        raise SessionPayloadError("userInfo must be a JSON object")
    info: Mapping[str, Any] = user_info or {}
    token = payload.get("token") or payload.get("accessToken")
    if not token:
        raise SessionPayloadError("Session record has no token")
    actor_id = info.get("id") or payload.get("id")
    if not actor_id:
        raise SessionPayloadError("Session record has no user id")
    screens = info.get("allowedScreens")
    if screens is None:
        screens = payload.get("allowedScreens")
    try:
        actor = Actor(
            id=str(actor_id),
            name=str(info.get("name") or payload.get("name") or "User"),
            email=info.get("email"),
            role=info.get("role") or payload.get("role"),
            allowed_screens=screens or [],
            subscription=info.get("subscription"),
        )
    except PydanticValidationError as exc:
        raise SessionPayloadError(f"Malformed session record: {exc.errors()[0].get('msg')}") from exc
    return LoginRecord(access_token=str(token), actor=actor)


class SessionData(BaseModel):
    access_token: str
    actor: Actor
    env_name: str | None = None


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Preferences(BaseModel):
    theme: Theme = Theme.LIGHT
    lang: str = "ar"

    @field_validator("lang")
    @classmethod
    def _check_lang(cls, value: str) -> str:
        lang = value.strip().lower()
        if lang not in {"ar", "en"}:
            raise ValueError(f"Unsupported language: {value!r}")
        return lang


class PageMeta(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_pages: int = Field(default=0, alias="totalPages")
    total_elements: int = Field(default=0, alias="totalElements")
    size: int | None = None
    number: int | None = None
    last: bool | None = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    name: str | None = None
    allowed_screens: Optional[List[str]] = Field(default=None, alias="allowedScreens")
