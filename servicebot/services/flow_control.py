"""
Control-Flow Gate

Advisory allow/deny map keyed by (ticket key, action), either side of which may be the
"*" wildcard. A (ticket, action) pair is denied while it is being handled so a second
press of the same button is dropped instead of racing the first.

Lookups go from most to least specific: (key, action), (key, *), (*, action), (*, *).
With no entry at all the pair is allowed.

The map lives in this process only; separate replicas do not see each other's entries.
"""

import asyncio
import logging
import threading
from enum import Enum

logger = logging.getLogger(__name__)

WILDCARD = "*"


class FlowAccess(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class ControlFlowGate:
    """Per-process (ticket, action) gate with an optional cooldown on release."""

    def __init__(self, cooldown_seconds: float = 0.0):
        self.cooldown_seconds = cooldown_seconds
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], FlowAccess] = {}

    def set_access(self, key: str, action: str, access: FlowAccess) -> None:
        with self._lock:
            self._entries[(key, action)] = access

    def clear(self, key: str, action: str) -> None:
        with self._lock:
            self._entries.pop((key, action), None)

    def access(self, key: str, action: str) -> FlowAccess:
        with self._lock:
            return self._lookup(key, action)

    def _lookup(self, key: str, action: str) -> FlowAccess:
        for candidate in ((key, action), (key, WILDCARD), (WILDCARD, action), (WILDCARD, WILDCARD)):
            if candidate in self._entries:
                return self._entries[candidate]
        return FlowAccess.ALLOW

    def is_allowed(self, key: str, action: str) -> bool:
        return self.access(key, action) == FlowAccess.ALLOW

    def try_acquire(self, key: str, action: str) -> bool:
        """Deny (key, action) if it is currently allowed. Returns False when already denied."""
        with self._lock:
            if self._lookup(key, action) == FlowAccess.DENY:
                return False
            self._entries[(key, action)] = FlowAccess.DENY
            return True

    def release(self, key: str, action: str) -> None:
        """Drop the deny entry, after the cooldown when one is configured."""
        if self.cooldown_seconds > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                loop.call_later(self.cooldown_seconds, self.clear, key, action)
                return
        self.clear(key, action)

    @property
    def entries(self) -> dict[tuple[str, str], FlowAccess]:
        with self._lock:
            return dict(self._entries)
