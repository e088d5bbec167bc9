"""
Coordinate Mapper

Maps image-relative button positions into absolute screen coordinates and
reconciles saved regions with the geometry of the screen in use now.

A region saved under another monitor layout can be corrected at two points:
- before capture, by uniformly rescaling the region so it fits the screen
- after detection, by moving each out-of-bounds point to the same relative
  position on the current screen
Both are strategies of one policy, chosen by when the mismatch shows up.
"""

from typing import List, Optional, Tuple, Iterable

from bluebutton.utils.logging import get_logger

from .models import (
    Point,
    ScreenBounds,
    CaptureRegion,
    ButtonCandidate,
    ScreenDetection,
)

logger = get_logger(__name__)

BEFORE_CAPTURE = 'before_capture'
AFTER_DETECTION = 'after_detection'


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def to_screen(candidate: ButtonCandidate, region: CaptureRegion) -> Point:
    """
    Translate a candidate's image position by the capture region offset.

    Raises:
        ValueError: if the candidate has no position
    """
    if candidate.position is None:
        raise ValueError(f"Candidate '{candidate.text}' has no position")
    return Point(region.x + candidate.position.x, region.y + candidate.position.y)


def needs_mismatch_adjustment(region: CaptureRegion, screen: ScreenBounds) -> bool:
    """True when the region does not fit inside the current screen."""
    return (
        region.x >= screen.width
        or region.y >= screen.height
        or region.right > screen.width
        or region.bottom > screen.height
    )


def relative_position(point: Point, region: CaptureRegion) -> Tuple[float, float]:
    """Fractional position of a point inside a region (0..1 when inside)."""
    return (
        (point.x - region.x) / region.width,
        (point.y - region.y) / region.height,
    )


def adjust_to_screen(
    point: Point,
    original_region: CaptureRegion,
    screen: ScreenBounds
) -> Point:
    """
    Move an out-of-bounds point to its proportional place on the screen.

    Points already inside the screen are returned unchanged.
    """
    if screen.contains(point):
        return point

    rel_x, rel_y = relative_position(point, original_region)
    adjusted = Point(
        _clamp(int(rel_x * screen.width), 0, screen.width - 1),
        _clamp(int(rel_y * screen.height), 0, screen.height - 1),
    )
    logger.info(
        f"Adjusted ({point.x}, {point.y}) -> ({adjusted.x}, {adjusted.y}) "
        f"for screen {screen} (region extends to {original_region.right}×{original_region.bottom})"
    )
    return adjusted


def scale_capture_region(region: CaptureRegion, screen: ScreenBounds) -> CaptureRegion:
    """
    Uniformly shrink a region so its far corner lands inside the screen.

    The scale factor is min(screen.width / right, screen.height / bottom);
    the result is clamped so it stays on screen. An axis whose far edge is
    at or left of/above the origin (a monitor placed left of or above the
    primary one) gives no usable factor and is only translated. Regions are
    never enlarged.
    """
    factors = [
        limit / extent
        for limit, extent in ((screen.width, region.right), (screen.height, region.bottom))
        if extent > 0
    ]
    scale = min([1.0] + factors)

    new_x = _clamp(int(region.x * scale), 0, screen.width - 1)
    new_y = _clamp(int(region.y * scale), 0, screen.height - 1)
    new_width = max(1, min(int(region.width * scale), screen.width - new_x))
    new_height = max(1, min(int(region.height * scale), screen.height - new_y))

    new_x = _clamp(new_x, 0, screen.width - new_width)
    new_y = _clamp(new_y, 0, screen.height - new_height)

    return CaptureRegion(
        x=new_x,
        y=new_y,
        width=new_width,
        height=new_height,
        name=region.name,
        created_at=region.created_at,
    )


class ReconcileStrategy:
    """One way of making a saved region usable on the current screen."""

    stage: str = ''

    def reconcile(self, target, original_region: CaptureRegion, screen: ScreenBounds):
        raise NotImplementedError


class PreCaptureRescale(ReconcileStrategy):
    """Rescale the region itself before anything is captured."""

    stage = BEFORE_CAPTURE

    def reconcile(self, target: CaptureRegion, original_region: CaptureRegion,
                  screen: ScreenBounds) -> CaptureRegion:
        return scale_capture_region(target, screen)


class PostDetectionAdjust(ReconcileStrategy):
    """Move a detected point proportionally after analysis."""

    stage = AFTER_DETECTION

    def reconcile(self, target: Point, original_region: CaptureRegion,
                  screen: ScreenBounds) -> Point:
        return adjust_to_screen(target, original_region, screen)


class CoordinateMapper:
    """
    Reconcile-region-with-screen policy bound to one screen geometry.

    Usage:
        mapper = CoordinateMapper(ScreenBounds(1920, 1080))
        capture = mapper.prepare_capture(saved_region)
        detections = mapper.map_candidates(candidates, capture, saved_region)
    """

    def __init__(
        self,
        screen: ScreenBounds,
        strategies: Optional[Iterable[ReconcileStrategy]] = None
    ):
        self.screen = screen
        self._strategies = {
            s.stage: s for s in (strategies or (PreCaptureRescale(), PostDetectionAdjust()))
        }

    def needs_adjustment(self, region: CaptureRegion) -> bool:
        return needs_mismatch_adjustment(region, self.screen)

    def reconcile(self, stage: str, target, original_region: CaptureRegion):
        """Apply the strategy registered for a stage."""
        strategy = self._strategies.get(stage)
        if strategy is None:
            raise KeyError(f"No reconcile strategy for stage '{stage}'")
        return strategy.reconcile(target, original_region, self.screen)

    def prepare_capture(self, region: CaptureRegion) -> CaptureRegion:
        """Region to actually capture; rescaled only when it does not fit."""
        if not self.needs_adjustment(region):
            return region

        logger.warning(
            f"Region '{region.name}' extends to {region.right}×{region.bottom} "
            f"but current screen is {self.screen}; rescaling before capture"
        )
        scaled = self.reconcile(BEFORE_CAPTURE, region, region)
        logger.info(f"Adjusted capture region: {scaled.x}, {scaled.y} | Size: {scaled.width}×{scaled.height}")
        return scaled

    def map_candidate(
        self,
        candidate: ButtonCandidate,
        capture_region: CaptureRegion,
        original_region: Optional[CaptureRegion] = None
    ) -> ScreenDetection:
        """Offset a candidate by the capture region, then adjust if the saved region is stale."""
        point = to_screen(candidate, capture_region)
        adjusted = False

        if original_region is not None and self.needs_adjustment(original_region):
            new_point = self.reconcile(AFTER_DETECTION, point, original_region)
            adjusted = new_point != point
            point = new_point

        if not self.screen.contains(point):
            logger.warning(
                f"'{candidate.text}' maps to ({point.x}, {point.y}), outside screen {self.screen}; "
                f"region may be stale"
            )

        return ScreenDetection(candidate=candidate, screen=point, adjusted=adjusted)

    def map_candidates(
        self,
        candidates: List[ButtonCandidate],
        capture_region: CaptureRegion,
        original_region: Optional[CaptureRegion] = None
    ) -> List[ScreenDetection]:
        """Map every candidate that has a position; the rest are skipped."""
        detections = []
        for candidate in candidates:
            if not candidate.has_position:
                logger.debug(f"Skipping '{candidate.text}': no coordinates in reply")
                continue
            detections.append(self.map_candidate(candidate, capture_region, original_region))
        return detections
