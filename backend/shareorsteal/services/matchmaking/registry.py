import threading
from typing import Any, Callable, Dict, Optional


Sender = Callable[[str, str, Dict[str, Any]], None]


class Connection:
    """Session attributes of one live transport connection."""

    def __init__(self, connection_id: str, device_id: Optional[str] = None):
        self.id = connection_id
        self.device_id = device_id
        self.location_id: Optional[str] = None
        self.display_name: Optional[str] = None


class ConnectionRegistry:
    """Maps connection ids to their session attributes and a delivery channel.

    ``send`` is the transport push (e.g. a Socket.IO emit to one sid). A
    connection is live from ``register`` until ``remove``.
    """

    def __init__(self, send: Sender):
        self._send = send
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()

    def register(self, connection_id: str, device_id: Optional[str] = None) -> Connection:
        conn = Connection(connection_id, device_id=device_id)
        with self._lock:
            self._connections[connection_id] = conn
        return conn

    def set_attributes(self, connection_id: str, location_id: str, display_name: str) -> None:
        with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None:
                return
            conn.location_id = location_id
            conn.display_name = display_name

    def get(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    def is_live(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._connections

    def deliver(self, connection_id: str, event: str, payload: Dict[str, Any]) -> bool:
        """Push an event to a connection. Returns False if it is gone."""
        if not self.is_live(connection_id):
            return False
        self._send(connection_id, event, payload)
        return True

    def remove(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.pop(connection_id, None)

    def __len__(self):
        with self._lock:
            return len(self._connections)
