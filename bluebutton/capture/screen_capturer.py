"""
Local Screen Capture

Grabs the whole desktop or a rectangle of it with mss and hands back
PIL images plus the PNG bytes the vision model expects.
"""

import io
from pathlib import Path
from typing import Optional, Tuple

import mss
from PIL import Image

from bluebutton.geometry.models import CaptureRegion, ScreenBounds
from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)


class ScreenCapturer:
    """
    Screen capture and screen geometry for the local display.

    monitors[0] in mss is the bounding box of all monitors, which is the
    single rectangle mismatch checks compare against.
    """

    def __init__(self, grabber=None):
        """
        Args:
            grabber: Optional mss instance (injected in tests)
        """
        self._sct = grabber

    @property
    def sct(self):
        if self._sct is None:
            self._sct = mss.mss()
        return self._sct

    def get_screen_bounds(self) -> ScreenBounds:
        """Bounding rectangle of the whole desktop."""
        monitor = self.sct.monitors[0]
        return ScreenBounds(
            width=monitor['width'],
            height=monitor['height'],
            x=monitor.get('left', 0),
            y=monitor.get('top', 0),
        )

    def _grab(self, monitor: dict) -> Image.Image:
        shot = self.sct.grab(monitor)
        return Image.frombytes('RGB', shot.size, shot.bgra, 'raw', 'BGRX')

    def capture_full(self) -> Image.Image:
        """Capture the entire desktop."""
        image = self._grab(self.sct.monitors[0])
        logger.info(f"Captured full screen: {image.width}x{image.height}")
        return image

    def capture_region(self, region: CaptureRegion) -> Image.Image:
        """Capture one rectangle of the desktop."""
        monitor = {
            'left': region.x,
            'top': region.y,
            'width': region.width,
            'height': region.height,
        }
        image = self._grab(monitor)
        logger.info(f"Captured {region}")
        return image

    def close(self) -> None:
        if self._sct is not None:
            self._sct.close()
            self._sct = None


def to_png_bytes(image: Image.Image) -> bytes:
    """Encode an image as PNG."""
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def load_image_file(path: str) -> Tuple[bytes, Optional[Tuple[int, int]]]:
    """
    Read an image file for analysis.

    Returns:
        (raw file bytes, (width, height) or None if PIL cannot read it)
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")

    data = file_path.read_bytes()
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
    except OSError as e:
        logger.warning(f"Could not read image dimensions for {path}: {e}")
        size = None
    return data, size
