"""
Screen Capture Module

Captures the local desktop or a region of it.
"""

from .screen_capturer import ScreenCapturer, to_png_bytes, load_image_file
from .screenshot_saver import ScreenshotSaver

__all__ = ['ScreenCapturer', 'to_png_bytes', 'load_image_file', 'ScreenshotSaver']
