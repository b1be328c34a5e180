"""Connectivity signal: a boolean online/offline observable.

Listeners may be plain callables or coroutine functions; on a transition
they are called in subscription order and awaited when they return an
awaitable, so a drain triggered by going online has finished by the time
``set_online`` returns.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[bool], "Awaitable[None] | None"]


class ConnectivityMonitor:

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def go_offline(self) -> None:
        """Drop connectivity without notifying listeners.

        Going offline never triggers work, so it is safe to call from
        synchronous code, including mid-drain.
        """
        if self._online:
            logger.info("Connectivity lost")
        self._online = False

    async def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity %s", "restored" if online else "lost")
        for listener in list(self._listeners):
            result = listener(online)
            if inspect.isawaitable(result):
                await result
