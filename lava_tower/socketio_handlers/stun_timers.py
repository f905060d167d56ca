import heapq
from typing import Dict, Iterator, List, Tuple


class StunTimers:
    """Pending stun expirations, keyed by player id.

    Deadlines are kept in a min-heap; rescheduling or cancelling a player
    leaves its old heap entry behind, and ``pop_expired`` drops such stale
    entries instead of firing them.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, str]] = []
        self._deadlines: Dict[str, Tuple[float, int]] = {}
        self._seq = 0

    def __len__(self) -> int:
        return len(self._deadlines)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._deadlines

    def schedule(self, player_id: str, expires_at: float) -> None:
        self._seq += 1
        self._deadlines[player_id] = (expires_at, self._seq)
        heapq.heappush(self._heap, (expires_at, self._seq, player_id))

    def cancel(self, player_id: str) -> bool:
        return self._deadlines.pop(player_id, None) is not None

    def clear(self) -> None:
        self._heap.clear()
        self._deadlines.clear()

    def pop_expired(self, now: float) -> Iterator[str]:
        while self._heap and self._heap[0][0] <= now:
            expires_at, seq, player_id = heapq.heappop(self._heap)
            if self._deadlines.get(player_id) != (expires_at, seq):
                continue
            del self._deadlines[player_id]
            yield player_id
