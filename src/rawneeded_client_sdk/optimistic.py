from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class OptimisticCell(Generic[T]):
    """Holds the last known-good value of one piece of client state.

    ``mutate`` snapshots the value, applies the local change right away, runs
    the remote call and either commits or restores the snapshot. Failures are
    re-raised after the rollback.
    """

    def __init__(self, value: T, *, name: str = "state") -> None:
        self._value = value
        self.name = name

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value

    def mutate(
        self,
        apply: Callable[[T], T],
        commit: Callable[[T], R],
        *,
        reconcile: Callable[[T, R], T] | None = None,
    ) -> R:
        snapshot = self._value
        self._value = apply(snapshot)
        try:
            result = commit(self._value)
        except Exception:
            self._value = snapshot
            logger.warning("optimistic_rollback", extra={"state": self.name})
            raise
        if reconcile is not None:
            self._value = reconcile(self._value, result)
        return result
