"""
Geometry Value Types

Immutable records that flow through one analysis cycle:
capture region -> button candidate (image space) -> screen detection.
"""

from datetime import datetime
from dataclasses import dataclass, field, asdict
from typing import NamedTuple, Optional, Dict, Any, Tuple


class InvalidRegionError(ValueError):
    """Raised when a rectangle has a zero or negative extent."""


class Point(NamedTuple):
    """Integer pixel position."""
    x: int
    y: int


@dataclass(frozen=True)
class ScreenBounds:
    """Bounding rectangle of the current screen."""
    width: int
    height: int
    x: int = 0
    y: int = 0

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidRegionError(
                f"Screen bounds must be positive, got {self.width}x{self.height}"
            )

    def contains(self, point: Point) -> bool:
        """True when the point lies in [0, width) x [0, height)."""
        return 0 <= point.x < self.width and 0 <= point.y < self.height

    @property
    def center(self) -> Point:
        return Point(self.width // 2, self.height // 2)

    def __str__(self) -> str:
        return f"{self.width}×{self.height}"


@dataclass(frozen=True)
class CaptureRegion:
    """
    Rectangle in absolute screen coordinates designating what to capture.

    Regions are immutable: editing a saved region means storing a new one
    under the same name.
    """
    x: int
    y: int
    width: int
    height: int
    name: str = ""
    created_at: Optional[str] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidRegionError(
                f"Region '{self.name}' must have positive size, got {self.width}x{self.height}"
            )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width // 2, self.y + self.height // 2)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def renamed(self, name: str) -> 'CaptureRegion':
        """Copy of this rectangle under a new name, stamped now."""
        return CaptureRegion(
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            name=name,
            created_at=datetime.now().isoformat(timespec='seconds')
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CaptureRegion':
        """Create from JSON dict."""
        return cls(
            x=int(data['x']),
            y=int(data['y']),
            width=int(data['width']),
            height=int(data['height']),
            name=data.get('name', ''),
            created_at=data.get('created_at')
        )

    def __str__(self) -> str:
        label = self.name or 'region'
        return f"{label} ({self.width}×{self.height} at {self.x},{self.y})"


@dataclass(frozen=True)
class ButtonCandidate:
    """
    A button as described by the model, in the analyzed image's pixel space.

    ``position`` is None when the reply gave no usable coordinates; (0, 0)
    is a legitimate top-left detection.
    """
    text: str
    position: Optional[Point] = None
    shape: str = ""

    @property
    def has_position(self) -> bool:
        return self.position is not None


@dataclass(frozen=True)
class ScreenDetection:
    """A candidate mapped to absolute screen coordinates."""
    candidate: ButtonCandidate
    screen: Point
    adjusted: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def text(self) -> str:
        return self.candidate.text

    @property
    def screen_x(self) -> int:
        return self.screen.x

    @property
    def screen_y(self) -> int:
        return self.screen.y

    def __str__(self) -> str:
        image = self.candidate.position
        shape = f" - {self.candidate.shape}" if self.candidate.shape else ""
        note = " (adjusted)" if self.adjusted else ""
        return (
            f"'{self.text}' at Image({image.x}, {image.y}) -> "
            f"Screen({self.screen_x}, {self.screen_y}){note}{shape}"
        )
