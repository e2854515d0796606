from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List

from ..exceptions import ApiError
from ..models_notifications import Notification, NotificationPage
from ..optimistic import OptimisticCell
from ..session import SessionStore

logger = logging.getLogger(__name__)

ReadListener = Callable[[str], None]


class ReadBroadcast:
    """Fan-out of successful mark-read events to every mounted surface."""

    def __init__(self) -> None:
        self._listeners: List[ReadListener] = []

    def subscribe(self, listener: ReadListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, notification_id: str) -> None:
        for listener in list(self._listeners):
            listener(notification_id)

    def __len__(self) -> int:
        return len(self._listeners)


@dataclass(frozen=True)
class _BadgeState:
    unread: int
    items: tuple[Notification, ...]
    marked: frozenset[str] = frozenset()


@dataclass
class NotificationSyncService:
    session: SessionStore
    page_size: int = 10
    on_read: ReadBroadcast = field(default_factory=ReadBroadcast)
    _state: OptimisticCell[_BadgeState] = field(
        default_factory=lambda: OptimisticCell(_BadgeState(unread=0, items=()), name="notifications"),
        init=False,
        repr=False,
    )
    _next_page: int = field(default=0, init=False)
    _last: bool = field(default=False, init=False)
    _count_loaded: bool = field(default=False, init=False)

    @property
    def items(self) -> List[Notification]:
        return list(self._state.value.items)

    @property
    def has_more(self) -> bool:
        return not self._last

    def refresh_unread_count(self) -> int:
        count = self.session.notifications_client().unread_count()
        self._state.set(replace(self._state.value, unread=count))
        self._count_loaded = True
        return count

    def get_unread_count(self) -> int:
        if not self._count_loaded:
            return self.refresh_unread_count()
        return self._state.value.unread

    def load_first_page(self) -> NotificationPage:
        page = self.session.notifications_client().list_notifications(page=0, size=self.page_size)
        self._state.set(replace(self._state.value, items=tuple(page.content)))
        self._advance(page, 0)
        return page

    def load_next_page(self) -> NotificationPage | None:
        if self._last:
            return None
        page = self.session.notifications_client().list_notifications(page=self._next_page, size=self.page_size)
        known = {item.id for item in self._state.value.items}
        merged = self._state.value.items + tuple(item for item in page.content if item.id not in known)
        self._state.set(replace(self._state.value, items=merged))
        self._advance(page, self._next_page)
        return page

    def mark_read(self, notification_id: str) -> bool:
        """Flip the notification locally, then tell the server.

        A remote failure restores the previous local state and is logged.
        After a success the count is re-read from the server, so a repeated
        mark of the same notification never drifts the local badge.
        """
        client = self.session.notifications_client()
        try:
            self._state.mutate(
                lambda state: _mark_locally(state, notification_id),
                lambda _state: client.mark_read(notification_id),
            )
        except ApiError as exc:
            logger.warning(
                "mark_read_failed",
                extra={"notification_id": notification_id, "code": exc.code, "trace_id": exc.trace_id},
            )
            return False
        self._reconcile_count()
        self.on_read.publish(notification_id)
        return True

    def _reconcile_count(self) -> None:
        try:
            self.refresh_unread_count()
        except ApiError as exc:
            logger.warning("unread_count_refresh_failed", extra={"code": exc.code, "trace_id": exc.trace_id})

    def _advance(self, page: NotificationPage, number: int) -> None:
        self._next_page = number + 1
        self._last = bool(page.last) if page.last is not None else self._next_page >= page.total_pages


def _mark_locally(state: _BadgeState, notification_id: str) -> _BadgeState:
    was_unread = notification_id not in state.marked
    items = []
    for item in state.items:
        if item.id == notification_id:
            was_unread = was_unread and not item.read
            item = item.model_copy(update={"read": True})
        items.append(item)
    unread = max(state.unread - 1, 0) if was_unread else state.unread
    return _BadgeState(unread=unread, items=tuple(items), marked=state.marked | {notification_id})


class BadgeSurface:
    """One independently mounted unread badge.

    It never trusts a pushed value: on mount and on every read event it
    re-queries the authoritative count. Once disposed it ignores events.
    """

    def __init__(self, service: NotificationSyncService, name: str = "badge") -> None:
        self.service = service
        self.name = name
        self.count: int | None = None
        self._alive = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def mounted(self) -> bool:
        return self._alive

    def mount(self) -> "BadgeSurface":
        self._alive = True
        self._unsubscribe = self.service.on_read.subscribe(self._on_read)
        self._pull()
        return self

    def dispose(self) -> None:
        self._alive = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_read(self, _notification_id: str) -> None:
        if self._alive:
            self._pull()

    def _pull(self) -> None:
        try:
            count = self.service.session.notifications_client().unread_count()
        except ApiError as exc:
            logger.warning("badge_refresh_failed", extra={"surface": self.name, "code": exc.code})
            return
        if self._alive:
            self.count = count
