"""Guarantee the spawned server is stopped on every exit path."""

from __future__ import annotations

import atexit
import signal
import threading
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .console import Console
    from .server import ServerHandle


class ServerLifecycle:
    """Owns at most one ServerHandle and releases it exactly once.

    Entering the context arms the cleanup before anything is spawned: an
    ``atexit`` hook is registered and SIGTERM is routed to
    ``KeyboardInterrupt`` so termination and Ctrl+C unwind the same way.
    """

    def __init__(self, console: Optional["Console"] = None) -> None:
        self.console = console
        self.handle: Optional["ServerHandle"] = None
        self.released = False
        self._armed = False
        self._sigterm_installed = False
        self._previous_sigterm: Any = None

    def __enter__(self) -> "ServerLifecycle":
        self.arm()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.release()
        finally:
            self.disarm()
        return False

    def arm(self) -> None:
        if self._armed:
            return
        atexit.register(self.release)
        if threading.current_thread() is threading.main_thread():
            self._previous_sigterm = signal.signal(signal.SIGTERM, signal.default_int_handler)
            self._sigterm_installed = True
        self._armed = True

    def disarm(self) -> None:
        if not self._armed:
            return
        atexit.unregister(self.release)
        if self._sigterm_installed:
            previous = self._previous_sigterm
            signal.signal(signal.SIGTERM, signal.SIG_DFL if previous is None else previous)
            self._sigterm_installed = False
        self._armed = False

    def adopt(self, handle: "ServerHandle") -> None:
        if self.handle is not None and not self.released:
            raise RuntimeError(f"A server is already running (pid={self.handle.pid})")
        self.handle = handle
        self.released = False

    def release(self) -> bool:
        """Stop the adopted server if there is one; later calls are no-ops."""

        if self.handle is None or self.released:
            return False
        self.released = True
        if self.console is not None:
            self.console.info(f"Stopping local server (pid={self.handle.pid})")
        return self.handle.stop()


__all__ = ["ServerLifecycle"]
