"""
Time-boxed cache in front of an org chart source.

Entitlement decisions made through this cache may lag a real manager change by
up to ``ttl_seconds``. Failed lookups are never cached.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from approvals.core.clock import Clock, SystemClock
from approvals.core.interfaces import OrgRelationship
from approvals.core.logging import get_logger

logger = get_logger(__name__)


class CachedOrgRelationship(OrgRelationship):
    """
    Caches ``get_direct_manager`` answers, including "no manager", for a fixed TTL.

    Expired entries are not evicted, only replaced on the next lookup for that user,
    so the cache holds at most one entry per user ever looked up. Use ``invalidate``
    to drop entries explicitly.
    """

    def __init__(self, inner: OrgRelationship, ttl_seconds: int = 300, clock: Optional[Clock] = None):
        self.inner = inner
        self.ttl = timedelta(seconds=max(0, ttl_seconds))
        self.clock = clock or SystemClock()
        self._entries: Dict[int, Tuple[Optional[int], datetime]] = {}

    async def get_direct_manager(self, user_id: int) -> Optional[int]:
        now = self.clock.now()
        cached = self._entries.get(user_id)
        if cached is not None and now - cached[1] < self.ttl:
            return cached[0]

        manager_id = await self.inner.get_direct_manager(user_id)
        if self.ttl:
            self._entries[user_id] = (manager_id, now)
        return manager_id

    def invalidate(self, user_id: Optional[int] = None) -> None:
        """Drop one cached answer, or all of them."""
        if user_id is None:
            self._entries.clear()
        else:
            self._entries.pop(user_id, None)
        logger.debug("Org chart cache invalidated", extra={"user_id": user_id})
