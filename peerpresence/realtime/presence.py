"""
Process-local presence registry.

Advisory only: state lives in memory, is lost on restart and is not shared
between processes.
"""

from collections import Counter


class PresenceRegistry:
    """Reference-counted set of online person ids (one count per open socket)."""

    def __init__(self):
        self._sockets: Counter[str] = Counter()

    def add(self, person_id: str) -> bool:
        """Register a socket. Returns True when the person just came online."""
        self._sockets[person_id] += 1
        return self._sockets[person_id] == 1

    def remove(self, person_id: str) -> bool:
        """Unregister a socket. Returns True when the person just went offline."""
        count = self._sockets.get(person_id, 0)
        if count <= 1:
            self._sockets.pop(person_id, None)
            return count == 1
        self._sockets[person_id] = count - 1
        return False

    def is_online(self, person_id: str) -> bool:
        return self._sockets[person_id] > 0

    def online_ids(self) -> list[str]:
        return sorted(pid for pid, count in self._sockets.items() if count > 0)

    def clear(self) -> None:
        self._sockets.clear()


presence = PresenceRegistry()
