"""
Geometry Module

Value types and coordinate mapping:
- Capture regions, screen bounds and points
- Image-to-screen translation
- Monitor mismatch detection and proportional correction
"""

from .models import (
    Point,
    ScreenBounds,
    CaptureRegion,
    ButtonCandidate,
    ScreenDetection,
    InvalidRegionError,
)
from .mapper import CoordinateMapper

__all__ = [
    'Point', 'ScreenBounds', 'CaptureRegion', 'ButtonCandidate',
    'ScreenDetection', 'InvalidRegionError', 'CoordinateMapper',
]
