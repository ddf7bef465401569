import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from .registry import ConnectionRegistry


class JoinResult:
    """Outcome of a join or requeue: either paired or queued at a position."""

    def __init__(self, paired: bool, position: Optional[int] = None,
                 partner_id: Optional[str] = None,
                 stale_partner_id: Optional[str] = None):
        self.paired = paired
        self.position = position
        self.partner_id = partner_id
        # Head that had already disconnected and was discarded
        self.stale_partner_id = stale_partner_id

    @classmethod
    def queued(cls, position: int, stale_partner_id: Optional[str] = None) -> 'JoinResult':
        return cls(False, position=position, stale_partner_id=stale_partner_id)

    @classmethod
    def pair(cls, partner_id: str) -> 'JoinResult':
        return cls(True, partner_id=partner_id)

    def to_dict(self):
        if self.paired:
            return {'paired': True, 'partnerId': self.partner_id}
        return {'paired': False, 'position': self.position}


class LocationQueueManager:
    """Per-location FIFO of waiting connection ids.

    A connection id is in at most one location queue at a time. Queues are
    created on first use and left in place when they empty.
    """

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry
        self._queues: Dict[str, Deque[str]] = {}
        self._location_of: Dict[str, str] = {}
        self._lock = threading.RLock()

    def join_or_pair(self, connection_id: str, location_id: str,
                     display_name: Optional[str] = None) -> JoinResult:
        """Pair with the head of the queue, or wait at its tail.

        The head becomes side A and the requester side B. A head that is no
        longer live is discarded and the requester is queued instead.
        """
        if display_name is not None:
            self._registry.set_attributes(connection_id, location_id, display_name)
        with self._lock:
            # A re-join moves the connection rather than duplicating it
            self._discard(connection_id)
            queue = self._queues.setdefault(location_id, deque())
            if not queue:
                return self._append(queue, connection_id, location_id)
            candidate = queue.popleft()
            self._location_of.pop(candidate, None)
            if not self._registry.is_live(candidate):
                return self._append(queue, connection_id, location_id, stale=candidate)
            return JoinResult.pair(candidate)

    def requeue(self, location_id: str, connection_id: str) -> JoinResult:
        """Re-admit a survivor, pairing it at once if someone is waiting."""
        return self.join_or_pair(connection_id, location_id)

    def remove_from_queue(self, location_id: str, connection_id: str) -> bool:
        with self._lock:
            queue = self._queues.get(location_id)
            if not queue or connection_id not in queue:
                return False
            queue.remove(connection_id)
            if self._location_of.get(connection_id) == location_id:
                del self._location_of[connection_id]
            return True

    def location_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._location_of.get(connection_id)

    def waiting(self, location_id: str) -> List[str]:
        with self._lock:
            return list(self._queues.get(location_id, ()))

    def size(self, location_id: str) -> int:
        with self._lock:
            return len(self._queues.get(location_id, ()))

    def locations(self) -> List[str]:
        with self._lock:
            return list(self._queues)

    def _append(self, queue: Deque[str], connection_id: str, location_id: str,
                stale: Optional[str] = None) -> JoinResult:
        queue.append(connection_id)
        self._location_of[connection_id] = location_id
        return JoinResult.queued(len(queue), stale_partner_id=stale)

    def _discard(self, connection_id: str) -> None:
        location_id = self._location_of.pop(connection_id, None)
        if location_id is None:
            return
        queue = self._queues.get(location_id)
        if queue and connection_id in queue:
            queue.remove(connection_id)
