"""
Main Content Analysis

Parses a model's description of what an image is mainly about.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from bluebutton.geometry.models import CaptureRegion, InvalidRegionError

REGION_PATTERN = re.compile(r'\((\d+),\s*(\d+),\s*(\d+),\s*(\d+)\)')

CONFIDENCE_LEVELS = {
    'high': 0.9,
    'medium': 0.6,
    'low': 0.3,
}
DEFAULT_CONFIDENCE = 0.5


@dataclass
class MainContentAnalysis:
    """What the model thinks the image mainly shows."""
    content_type: str = "Unknown"
    description: str = ""
    main_region: Optional[CaptureRegion] = None
    confidence: float = DEFAULT_CONFIDENCE
    important_elements: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.content_type}: {self.description} (Confidence: {self.confidence:.0%})"


def _after_colon(line: str) -> str:
    colon = line.find(':')
    return line[colon + 1:].strip() if colon >= 0 else ""


def parse_confidence(value: str) -> float:
    """Map a high/medium/low word (or a phrase containing one) to a score."""
    value = value.strip().lower()
    if value in CONFIDENCE_LEVELS:
        return CONFIDENCE_LEVELS[value]
    for word, score in CONFIDENCE_LEVELS.items():
        if word in value:
            return score
    return DEFAULT_CONFIDENCE


def parse_region(line: str) -> Optional[CaptureRegion]:
    """Parse ``(x, y, width, height)``; None if absent or empty."""
    match = REGION_PATTERN.search(line)
    if not match:
        return None
    x, y, width, height = (int(g) for g in match.groups())
    try:
        return CaptureRegion(x, y, width, height, name="main content")
    except InvalidRegionError:
        return None


def parse_main_content(text: Optional[str]) -> MainContentAnalysis:
    """
    Parse a structured main-content reply.

    Recognized lines: ``Type:``, ``Main content:``, ``Confidence:``,
    ``Region:`` and ``- element`` bullets. A reply with none of those is
    taken as a one-sentence description.
    """
    analysis = MainContentAnalysis()
    text = (text or "").strip()

    for raw in text.split('\n'):
        line = raw.strip()
        lower = line.lower()
        if lower.startswith('type:'):
            analysis.content_type = _after_colon(line) or analysis.content_type
        elif lower.startswith('main content:'):
            analysis.description = _after_colon(line)
        elif lower.startswith('confidence:'):
            analysis.confidence = parse_confidence(_after_colon(line))
        elif lower.startswith('region:'):
            analysis.main_region = parse_region(line)
        elif line.startswith('- '):
            analysis.important_elements.append(line[2:].strip())

    if not analysis.description:
        analysis.description = text or "No valid response"

    return analysis
