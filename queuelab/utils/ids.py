import itertools
import threading

_ID_LENGTH = 12


class IdSequence:
    """Produces monotonically increasing uppercase hex IDs.

    IDs are zero-padded to at least `_ID_LENGTH` hex digits but may grow
    in length as the counter increases. Each registry owns one sequence so
    IDs restart from zero on reset.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> tuple[int, str]:
        """Return the next (sequence number, id) pair."""
        with self._lock:
            value = next(self._counter)
        return value, format(value, f"0{_ID_LENGTH}X")
