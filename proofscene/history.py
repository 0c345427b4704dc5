"""Bounded undo/redo history of full scene snapshots."""

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional, Sequence

from .model import AppState, GeometricObject, HistoryEntry, Parameter, ParameterId

logger = logging.getLogger(__name__)


def snapshot(objects: Sequence[GeometricObject], parameters: Dict[ParameterId, Parameter]) -> HistoryEntry:
    return AppState(objects=copy.deepcopy(list(objects)), parameters=copy.deepcopy(dict(parameters)))


class History:
    """Snapshot list with a cursor.

    ``entries[index]`` always mirrors the live state after the last discrete
    operation.  Pushing from a non-tip cursor discards the redo branch; the
    oldest entries are evicted beyond ``capacity``.

    A gesture (a slider drag, say) is bracketed by :meth:`begin_gesture` and
    :meth:`end_gesture`; callers skip :meth:`push` for live updates while
    :attr:`active_gesture` is set, so the whole drag is one undo step.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.capacity = capacity
        self.entries: List[HistoryEntry] = []
        self.index = -1
        self.active_gesture: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.entries) - 1

    def current(self) -> Optional[HistoryEntry]:
        if 0 <= self.index < len(self.entries):
            return self.entries[self.index]
        return None

    def push(
        self,
        objects: Sequence[GeometricObject],
        parameters: Dict[ParameterId, Parameter],
        *,
        skip_if_unchanged: bool = False,
    ) -> bool:
        """Record a snapshot; returns ``False`` if it was skipped as a duplicate of the cursor entry."""

        if skip_if_unchanged and self.matches_current(objects, parameters):
            return False
        del self.entries[self.index + 1:]
        self.entries.append(snapshot(objects, parameters))
        overflow = len(self.entries) - self.capacity
        if overflow > 0:
            del self.entries[:overflow]
        self.index = len(self.entries) - 1
        logger.debug("History push -> %d/%d", self.index + 1, len(self.entries))
        return True

    def matches_current(
        self, objects: Sequence[GeometricObject], parameters: Dict[ParameterId, Parameter]
    ) -> bool:
        tip = self.current()
        return tip is not None and tip.objects == list(objects) and tip.parameters == dict(parameters)

    def revert(self) -> Optional[HistoryEntry]:
        """Return a private copy of the cursor entry without moving the cursor."""

        tip = self.current()
        if tip is None:
            return None
        self.active_gesture = None
        return copy.deepcopy(tip)

    def undo(self) -> Optional[HistoryEntry]:
        """Step back; return a private copy of the restored snapshot, or ``None`` at the oldest entry."""

        if not self.can_undo:
            logger.debug("Undo ignored at oldest entry")
            return None
        self.index -= 1
        self.active_gesture = None
        return copy.deepcopy(self.entries[self.index])

    def redo(self) -> Optional[HistoryEntry]:
        if not self.can_redo:
            logger.debug("Redo ignored at newest entry")
            return None
        self.index += 1
        self.active_gesture = None
        return copy.deepcopy(self.entries[self.index])

    def begin_gesture(
        self,
        gesture_id: str,
        objects: Sequence[GeometricObject],
        parameters: Dict[ParameterId, Parameter],
    ) -> None:
        # The cursor entry already holds the pre-gesture state unless something changed
        # since the last push (animation frames are not recorded, for one).
        self.push(objects, parameters, skip_if_unchanged=True)
        self.active_gesture = gesture_id
        logger.debug("Gesture %s started", gesture_id)

    def is_gesture_active(self, gesture_id: Optional[str] = None) -> bool:
        if gesture_id is None:
            return self.active_gesture is not None
        return self.active_gesture == gesture_id

    def end_gesture(
        self,
        gesture_id: str,
        objects: Sequence[GeometricObject],
        parameters: Dict[ParameterId, Parameter],
    ) -> bool:
        """Close ``gesture_id`` and record the post-gesture state.

        Returns ``False`` (and records nothing) if that gesture is not active.
        """

        if self.active_gesture != gesture_id:
            logger.debug("Ignoring end of inactive gesture %s", gesture_id)
            return False
        self.active_gesture = None
        self.push(objects, parameters)
        logger.debug("Gesture %s finished", gesture_id)
        return True


__all__ = ["History", "snapshot"]
