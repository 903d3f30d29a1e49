"""
HistoryManager - bounded undo/redo of editor states.
"""

from dataclasses import dataclass

from .config import HISTORY_LIMIT
from .filters import FilterSettings


@dataclass(frozen=True)
class HistoryEntry:
    """Snapshot of the page editor: source raster, rotation and filters"""
    raster: object
    rotation: int = 0
    filters: FilterSettings = FilterSettings()


class HistoryManager:
    """
    Linear undo/redo history with a fixed number of past states.

    The manager holds a present state, up to `limit` past states and a redo
    tail. Pushing a state that differs from the present moves the present
    into the past (dropping the oldest past state on overflow) and clears
    the redo tail.
    """

    def __init__(self, initial_state, limit=HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._past = []
        self._future = []
        self._present = initial_state

    @property
    def current(self):
        return self._present

    @property
    def past_count(self):
        return len(self._past)

    @property
    def future_count(self):
        return len(self._future)

    def push(self, state):
        """
        Record a new present state.

        Returns:
            bool: False if the state equals the present one and was ignored
        """
        if state == self._present:
            return False

        self._past.append(self._present)
        self._present = state
        self._future = []

        if len(self._past) > self.limit:
            del self._past[0]
        return True

    def undo(self):
        """Step back one state. Returns the new present, or None at the start"""
        if not self._past:
            return None
        self._future.insert(0, self._present)
        self._present = self._past.pop()
        return self._present

    def redo(self):
        """Step forward one state. Returns the new present, or None at the end"""
        if not self._future:
            return None
        self._past.append(self._present)
        self._present = self._future.pop(0)
        return self._present

    def can_undo(self):
        return bool(self._past)

    def can_redo(self):
        return bool(self._future)

    def reset(self, state):
        """Forget all history and start again from state"""
        self._past = []
        self._future = []
        self._present = state
