"""
Linear edit history with undo/redo.

history[0] is always the originally loaded image and the current image is
always history[-1]. Undone images are kept in a redo sequence, most recent
first. Any newly confirmed edit clears the redo sequence.

Classes:
    EditHistory: Undo/redo ledger of confirmed images
"""

import logging
from typing import Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EditHistory(Generic[T]):
    """
    Ledger of confirmed image states.

    Example:
        >>> history = EditHistory(original)
        >>> history.push(edited)
        >>> history.undo() is original
        True
        >>> history.redo() is edited
        True
    """

    def __init__(self, initial: Optional[T] = None):
        self._states: List[T] = []
        self._redo: List[T] = []
        if initial is not None:
            self.reset(initial)

    def reset(self, initial: T) -> None:
        """Start a new history whose first entry is initial."""
        if initial is None:
            raise ValueError("initial state cannot be None")
        self._states = [initial]
        self._redo = []

    def clear(self) -> None:
        self._states = []
        self._redo = []

    @property
    def is_empty(self) -> bool:
        return not self._states

    @property
    def original(self) -> Optional[T]:
        return self._states[0] if self._states else None

    @property
    def current(self) -> Optional[T]:
        return self._states[-1] if self._states else None

    @property
    def states(self) -> Tuple[T, ...]:
        return tuple(self._states)

    @property
    def redo_states(self) -> Tuple[T, ...]:
        return tuple(self._redo)

    @property
    def can_undo(self) -> bool:
        return len(self._states) > 1

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def push(self, state: T) -> None:
        """
        Record a newly confirmed state.

        Raises:
            RuntimeError: If the history has not been started with reset()
        """
        if not self._states:
            raise RuntimeError("Cannot push onto an empty history; call reset() first")
        self._states.append(state)
        self._redo = []
        logger.debug(f"History push: {len(self._states)} states")

    def undo(self) -> Optional[T]:
        """
        Step back one state. No-op when only the original remains.

        Returns:
            The new current state
        """
        if not self.can_undo:
            return self.current
        undone = self._states.pop()
        self._redo.insert(0, undone)
        logger.debug(f"Undo: {len(self._states)} states, {len(self._redo)} redoable")
        return self.current

    def redo(self) -> Optional[T]:
        """
        Re-apply the most recently undone state. No-op when nothing to redo.

        Returns:
            The new current state
        """
        if not self._redo:
            return self.current
        self._states.append(self._redo.pop(0))
        logger.debug(f"Redo: {len(self._states)} states, {len(self._redo)} redoable")
        return self.current

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return f"EditHistory(states={len(self._states)}, redo={len(self._redo)})"
