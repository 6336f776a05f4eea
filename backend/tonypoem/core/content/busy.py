"""
Re-entrancy guard for mutating admin actions.

A delete or form submission holds a key such as ("programs", record_id)
for as long as it runs; an identical action arriving meanwhile is rejected
with BusyError instead of running twice. The key is released on every exit
path.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable, Set

from tonypoem.core.content.errors import BusyError

logger = logging.getLogger("tonypoem.content")


class BusyGuard:
    def __init__(self):
        self._held: Set[Hashable] = set()

    def is_busy(self, key: Hashable) -> bool:
        return key in self._held

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        # No await between the check and the add: single event loop
        if key in self._held:
            logger.warning(f"Rejected duplicate action while busy: {key!r}")
            raise BusyError(f"{key!r} is already in progress")
        self._held.add(key)
        try:
            yield
        finally:
            self._held.discard(key)
