"""
Interaction Controller

Moves the cursor to (and optionally clicks) one selected detection.
Clicks are preceded by a countdown the operator can abort with Ctrl+C,
and every move is verified by reading the cursor position back.
"""

import time
from enum import Enum
from dataclasses import dataclass
from typing import Callable, List, Optional

from bluebutton.geometry.models import Point, ScreenDetection
from bluebutton.input.mouse import within_tolerance
from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)


class InteractionAction(Enum):
    MOVE = 'move'
    CLICK = 'click'
    SKIP = 'skip'


class OutcomeKind(Enum):
    CLICKED = 'clicked'
    MOVED = 'moved'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class Outcome:
    """What actually happened to the cursor."""
    kind: OutcomeKind
    detection: Optional[ScreenDetection] = None
    final_position: Optional[Point] = None
    position_mismatch: bool = False
    reason: str = ""

    @classmethod
    def skipped(cls, reason: str, detection: Optional[ScreenDetection] = None) -> 'Outcome':
        return cls(kind=OutcomeKind.SKIPPED, detection=detection, reason=reason)


def _announce(remaining: int) -> None:
    print(f"Clicking in {remaining} seconds... (Press Ctrl+C to cancel)")


class InteractionController:
    """
    Acts on detections with the mouse.

    Usage:
        controller = InteractionController(MouseController())
        outcome = controller.interact(detections, InteractionAction.CLICK, index=2)
    """

    def __init__(
        self,
        mouse,
        countdown_seconds: int = 5,
        position_tolerance: int = 5,
        settle_delay: float = 0.3,
        action_logger=None,
        sleep: Callable[[float], None] = time.sleep,
        on_tick: Callable[[int], None] = _announce
    ):
        """
        Args:
            mouse: MouseController (move_to/position/click)
            countdown_seconds: Seconds to wait before any click
            position_tolerance: Allowed cursor error in pixels per axis
            settle_delay: Wait after moving before reading the cursor back
            action_logger: Optional ActionLogger
            sleep: Sleep function (replaced in tests)
            on_tick: Called once per countdown second with the seconds left
        """
        self.mouse = mouse
        self.countdown_seconds = countdown_seconds
        self.position_tolerance = position_tolerance
        self.settle_delay = settle_delay
        self.action_logger = action_logger
        self._sleep = sleep
        self._on_tick = on_tick

    @staticmethod
    def select(detections: List[ScreenDetection], index: Optional[int] = None) -> ScreenDetection:
        """
        Pick the detection to act on.

        A single detection is selected directly; otherwise ``index`` (1-based)
        is required.

        Raises:
            ValueError: empty list, or no index given for several detections
            IndexError: index out of range
        """
        if not detections:
            raise ValueError("No detections to interact with")
        if index is None:
            if len(detections) == 1:
                return detections[0]
            raise ValueError(f"{len(detections)} detections found; an explicit selection is required")
        if index < 1 or index > len(detections):
            raise IndexError(f"Button selection {index} out of range 1-{len(detections)}")
        return detections[index - 1]

    def countdown(self) -> bool:
        """Wait out the countdown. Returns False if interrupted."""
        try:
            for remaining in range(self.countdown_seconds, 0, -1):
                self._on_tick(remaining)
                self._sleep(1)
        except KeyboardInterrupt:
            logger.warning("Click cancelled during countdown")
            return False
        return True

    def _move_and_verify(self, target: Point):
        """Returns (moved, final_position, mismatch)."""
        if not self.mouse.move_to(target.x, target.y):
            return False, None, False

        self._sleep(self.settle_delay)
        actual = self.mouse.position()
        mismatch = not within_tolerance(actual, target, self.position_tolerance)
        if mismatch:
            logger.warning(
                f"Mouse position mismatch! Expected ({target.x}, {target.y}), "
                f"got ({actual.x}, {actual.y})"
            )
        else:
            logger.info(f"Verification - Mouse is now at: ({actual.x}, {actual.y})")
        return True, actual, mismatch

    def move(self, detection: ScreenDetection) -> Outcome:
        """Move the cursor onto a detection without clicking."""
        moved, actual, mismatch = self._move_and_verify(detection.screen)
        if not moved:
            return Outcome.skipped("Failed to move mouse to target position", detection)

        if self.action_logger:
            self.action_logger.log_move(detection.screen_x, detection.screen_y, detection.text)
        return Outcome(OutcomeKind.MOVED, detection, actual, mismatch)

    def click(self, detection: ScreenDetection) -> Outcome:
        """Count down, move onto a detection, verify, then click."""
        logger.info(
            f"About to click '{detection.text}' at ({detection.screen_x}, {detection.screen_y})"
        )
        if not self.countdown():
            if self.action_logger:
                self.action_logger.log_skip('cancelled during countdown')
            return Outcome.skipped("Cancelled during countdown", detection)

        moved, actual, mismatch = self._move_and_verify(detection.screen)
        if not moved:
            return Outcome.skipped("Failed to move mouse to target position", detection)

        # A mismatch is reported but does not block the click
        self.mouse.click()
        if self.action_logger:
            self.action_logger.log_click(detection.screen_x, detection.screen_y, detection.text)
        logger.info(f"Clicked on '{detection.text}' at ({detection.screen_x}, {detection.screen_y})")
        return Outcome(OutcomeKind.CLICKED, detection, actual, mismatch)

    def interact(
        self,
        detections: List[ScreenDetection],
        action: InteractionAction = InteractionAction.CLICK,
        index: Optional[int] = None
    ) -> Outcome:
        """
        Move to or click one of the detections.

        Raises:
            ValueError: empty detection list or ambiguous selection
            IndexError: selection out of range
        """
        if not detections:
            raise ValueError("No detections to interact with")
        if action is InteractionAction.SKIP:
            if self.action_logger:
                self.action_logger.log_skip('skipped by operator')
            return Outcome.skipped("Mouse interaction skipped")

        detection = self.select(detections, index)
        if action is InteractionAction.MOVE:
            return self.move(detection)
        return self.click(detection)
