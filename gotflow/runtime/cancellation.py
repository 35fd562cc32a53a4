# gotflow/runtime/cancellation.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Observes cancellation requested through a CancellationTokenSource. Tokens are
    checked cooperatively; nothing is interrupted unless a registered callback
    does so.
    """

    def __init__(self, source: Optional["CancellationTokenSource"] = None) -> None:
        self._source = source

    @staticmethod
    def none() -> "CancellationToken":
        """Return a token that can never be cancelled."""
        return CancellationToken()

    @property
    def can_be_cancelled(self) -> bool:
        return self._source is not None

    @property
    def is_cancelled(self) -> bool:
        return self._source is not None and self._source.is_cancelled

    def raise_if_cancelled(self) -> None:
        """
        :raises asyncio.CancelledError: If cancellation has been requested.
        """
        if self.is_cancelled:
            raise asyncio.CancelledError("The operation was cancelled.")

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Invoke `callback` once when cancellation is requested, immediately if it
        already was. Returns a function that removes the registration.
        """
        if self._source is None:
            return lambda: None
        return self._source._register(callback)

    async def wait(self) -> None:
        """Suspend until cancellation is requested."""
        if self.is_cancelled:
            return
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        def _wake() -> None:
            if not waiter.done():
                waiter.set_result(None)

        unregister = self.register(_wake)
        try:
            await waiter
        finally:
            unregister()

    def __repr__(self) -> str:
        return f"CancellationToken(is_cancelled={self.is_cancelled})"


class CancellationTokenSource:
    """
    Signals cancellation to the tokens it hands out, either on demand, after a
    delay, or when one of the tokens it is linked to is cancelled.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._links: List[Callable[[], None]] = []
        self._disposed = False

    @classmethod
    def linked(cls, *tokens: Optional[CancellationToken]) -> "CancellationTokenSource":
        """
        Create a source that is cancelled as soon as any of the given tokens is.
        """
        source = cls()
        for token in tokens:
            if token is None or not token.can_be_cancelled:
                continue
            source._links.append(token.register(source.cancel))
        return source

    @property
    def token(self) -> CancellationToken:
        return CancellationToken(self)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.unlink()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback %r failed", callback)

    def cancel_after(self, delay: float) -> None:
        """
        Schedule cancellation on the running event loop after `delay` seconds.
        A previously scheduled cancellation is replaced.
        """
        if self._cancelled:
            return
        if self._timer is not None:
            self._timer.cancel()
        if delay <= 0:
            self.cancel()
            return
        self._timer = asyncio.get_running_loop().call_later(delay, self.cancel)

    def dispose(self) -> None:
        """Drop the pending timer and the links to other tokens without cancelling."""
        if self._disposed:
            return
        self._disposed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.unlink()
        self._callbacks.clear()

    def unlink(self) -> None:
        """
        Detach from the tokens this source was linked to. A pending timer and the
        callbacks registered on this source are kept.
        """
        links, self._links = self._links, []
        for unregister in links:
            unregister()

    def _register(self, callback: Callable[[], None]) -> Callable[[], None]:
        if self._cancelled:
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def _unregister() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return _unregister

    def __enter__(self) -> "CancellationTokenSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
