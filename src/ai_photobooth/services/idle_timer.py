"""Single-shot idle timer used to reclaim the kiosk."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class IdleTimer:
    """Wraps one pending ``loop.call_later`` handle.

    Arming always replaces the pending handle, so at most one timeout can
    fire per arming.
    """

    _handle: asyncio.TimerHandle | None = field(default=None, init=False)

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, seconds: float, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` after ``seconds``, replacing any pending one."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, seconds), self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
