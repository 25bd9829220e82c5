# ───────────────────────── src/pdfvault/gestures.py ─────────────────────────
"""
Drag-and-drop gesture state machine.

IDLE -> (press on a node) -> ARMED -> (pointer travels past the threshold)
-> DRAGGING -> (drop) -> IDLE. A drop onto a file means "into that file's
folder"; a drop onto the node that started the drag does nothing.
"""

from enum import Enum
from typing import Optional, Tuple

from .model import VaultNode


class GestureState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"


class DragGesture:
    """Turn press/motion/release pointer events into move requests."""

    def __init__(self, threshold: int = 5):
        self.threshold = threshold
        self.state = GestureState.IDLE
        self.source: Optional[VaultNode] = None
        self._origin = (0, 0)

    def press(self, node: Optional[VaultNode], x: int, y: int) -> None:
        """Arm a drag on ``node``; pressing on empty space resets the gesture."""
        if node is None:
            self.cancel()
            return
        self.source = node
        self._origin = (x, y)
        self.state = GestureState.ARMED

    def motion(self, x: int, y: int) -> bool:
        """Track pointer motion with the button held.

        Returns:
            True while a drag is in progress
        """
        if self.state is GestureState.ARMED:
            dx = abs(x - self._origin[0])
            dy = abs(y - self._origin[1])
            if dx > self.threshold or dy > self.threshold:
                self.state = GestureState.DRAGGING
        return self.state is GestureState.DRAGGING

    def drop_folder(self, target: Optional[VaultNode]) -> Optional[VaultNode]:
        """Folder a drop onto ``target`` would move the source into."""
        if target is None or self.source is None or target is self.source:
            return None
        if target.is_directory:
            return target
        return target.parent_folder

    def can_drop(self, target: Optional[VaultNode]) -> bool:
        """Drag-over feedback: whether releasing over ``target`` would move."""
        if self.state is not GestureState.DRAGGING:
            return False
        return self.drop_folder(target) is not None

    def drop(
        self, target: Optional[VaultNode]
    ) -> Optional[Tuple[VaultNode, VaultNode]]:
        """Finish the gesture.

        Returns:
            ``(source, destination_folder)`` when a move should happen, None
            for a plain click or an ignored drop
        """
        try:
            if self.state is not GestureState.DRAGGING:
                return None
            folder = self.drop_folder(target)
            if folder is None:
                return None
            return self.source, folder
        finally:
            self.cancel()

    def cancel(self) -> None:
        self.state = GestureState.IDLE
        self.source = None
