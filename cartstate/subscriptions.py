"""Listener registry with explicit subscription handles."""
from typing import Callable, Generic, List, TypeVar

from cartstate.logging import get_logger

logger = get_logger(__name__)

L = TypeVar("L", bound=Callable)


class Subscription:
    """
    Handle returned by `Listeners.add`.

    Usable as a context manager; `close()` is idempotent.
    """

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Listeners(Generic[L]):
    """Ordered set of callbacks. A failing callback doesn't stop the rest."""

    def __init__(self, name: str):
        self._name = name
        self._listeners: List[L] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: L) -> Subscription:
        self._listeners.append(listener)
        return Subscription(lambda: self._remove(listener))

    def _remove(self, listener: L) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, *args) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception as e:
                logger.warning(f"{self._name} listener failed: {e}", exc_info=True)
