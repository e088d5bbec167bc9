"""
Mouse Control

Three primitives on the local desktop: set the cursor position, read it
back, and press-and-release the left button. The real backend is
pyautogui; a dry-run mode only tracks the position it was told to use.
"""

import time

from bluebutton.geometry.models import Point
from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)


class PyAutoGuiBackend:
    """Adapter over pyautogui, imported on first use (it needs a display)."""

    def __init__(self):
        import pyautogui

        pyautogui.FAILSAFE = False
        pyautogui.PAUSE = 0
        self._gui = pyautogui

    def move_to(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y)

    def position(self) -> Point:
        pos = self._gui.position()
        return Point(int(pos[0]), int(pos[1]))

    def mouse_down(self) -> None:
        self._gui.mouseDown(button='left')

    def mouse_up(self) -> None:
        self._gui.mouseUp(button='left')


class MouseController:
    """
    Synchronous mouse primitives.

    Usage:
        mouse = MouseController()
        mouse.move_to(500, 300)
        mouse.click()
    """

    def __init__(
        self,
        backend=None,
        dry_run: bool = False,
        press_release_gap: float = 0.05
    ):
        """
        Initialize mouse controller.

        Args:
            backend: Object with move_to/position/mouse_down/mouse_up
            dry_run: If True, don't actually send commands
            press_release_gap: Seconds between button down and up
        """
        self.dry_run = dry_run
        self.press_release_gap = press_release_gap
        self._backend = backend
        self._dry_position = Point(0, 0)

    @property
    def backend(self):
        if self._backend is None:
            self._backend = PyAutoGuiBackend()
        return self._backend

    def position(self) -> Point:
        """Current absolute cursor position."""
        if self.dry_run:
            return self._dry_position
        return self.backend.position()

    def move_to(self, x: int, y: int) -> bool:
        """
        Move the cursor to absolute screen coordinates.

        Returns:
            True if the move command was issued without error
        """
        logger.info(f"Moving mouse to ({x}, {y})")
        if self.dry_run:
            self._dry_position = Point(x, y)
            return True
        try:
            self.backend.move_to(x, y)
        except Exception as e:
            logger.error(f"Failed to move mouse to ({x}, {y}): {e}")
            return False
        return True

    def click(self) -> None:
        """Left-button press and release at the current position."""
        logger.info("Performing left click")
        if self.dry_run:
            return
        self.backend.mouse_down()
        time.sleep(self.press_release_gap)
        self.backend.mouse_up()

    def click_at(self, x: int, y: int, settle: float = 0.1) -> bool:
        """Move, wait briefly, then click."""
        if not self.move_to(x, y):
            return False
        time.sleep(settle)
        self.click()
        return True


def within_tolerance(actual: Point, target: Point, tolerance: int) -> bool:
    """True when both axes differ by at most ``tolerance`` pixels."""
    return abs(actual.x - target.x) <= tolerance and abs(actual.y - target.y) <= tolerance
