"""
Screenshot Saver - Saves captured images for inspection.

Each run gets its own timestamped session directory.
"""

from pathlib import Path
from datetime import datetime
from PIL import Image

from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)


class ScreenshotSaver:
    """Handles saving screenshots for debugging."""

    def __init__(self, base_dir: str = "logs/screenshots"):
        """
        Initialize screenshot saver.

        Args:
            base_dir: Base directory for saving screenshots
        """
        self.base_dir = Path(base_dir)
        self.session_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.session_dir = self.base_dir / self.session_timestamp
        self.screenshot_count = 0

    def save(self, image: Image.Image, label: str, suffix: str = "") -> Path:
        """
        Save a screenshot.

        Args:
            image: PIL Image to save
            label: What was captured (region name, "full_screen", ...)
            suffix: Optional suffix for filename

        Returns:
            Path to saved file
        """
        self.session_dir.mkdir(parents=True, exist_ok=True)
        self.screenshot_count += 1

        clean_label = label.replace(" ", "_").replace("/", "_") or "region"
        parts = [f"{self.screenshot_count:04d}", clean_label]
        if suffix:
            parts.append(suffix)

        filepath = self.session_dir / ("_".join(parts) + ".png")
        image.save(filepath)
        logger.debug(f"Screenshot saved: {filepath}")

        return filepath
