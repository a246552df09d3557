"""Broadcast auth state changes to interested consumers."""

from __future__ import annotations

import logging
import threading

from typing import TYPE_CHECKING

from ..types import AuthView


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger("twitch_auth.auth")


class SessionPublisher:
    """Holds the latest ``AuthView`` and notifies subscribers of changes.

    A subscriber that raises is logged and skipped; the others still
    receive the view.
    """

    def __init__(self) -> None:
        """Initialize the publisher with an empty, idle view."""
        self._lock = threading.Lock()
        self._subscribers: list[Callable[[AuthView], None]] = []
        self._latest = AuthView()

    @property
    def latest(self) -> AuthView:
        """The most recently published view."""
        with self._lock:
            return self._latest

    def subscribe(
        self, callback: Callable[[AuthView], None], replay: bool = True
    ) -> Callable[[], None]:
        """Register a callback.

        Parameters
        ----------
        callback : callable
            ``callback(view) -> None``.
        replay : bool
            Immediately deliver the current view (default ``True``).

        Returns
        -------
        callable
            Call it to unsubscribe.
        """
        with self._lock:
            self._subscribers.append(callback)
            current = self._latest

        if replay:
            self._deliver(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, view: AuthView) -> None:
        """Store ``view`` and deliver it to every subscriber."""
        with self._lock:
            if view == self._latest:
                return
            self._latest = view
            subscribers = list(self._subscribers)

        for callback in subscribers:
            self._deliver(callback, view)

    @staticmethod
    def _deliver(callback: Callable[[AuthView], None], view: AuthView) -> None:
        try:
            callback(view)
        except Exception:
            logger.exception("Auth state subscriber %r failed", callback)
