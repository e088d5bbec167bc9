"""
Button Response Parser

Turns the free-form text a vision model returns into ButtonCandidate records.

Expected shape (not guaranteed by the model):

    BUTTON 1:
    Text: "Save"
    Position: (120, 45)
    Appearance: rounded, dark blue

The parser is a single forward scan with two states. Each line is tried
against the record marker first, then the known fields in a fixed order
(text, position, appearance), and only then against the fallback scan.
A line such as ``Text: "Go (2, 3)"`` therefore always sets the label.
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Callable, Tuple

from bluebutton.geometry.models import ButtonCandidate, Point
from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)

# "BUTTON 1:", "Button One:", "button #2 (primary):"; the ordinal is not interpreted
RECORD_MARKER = re.compile(r'^button\s+\S+[^:]*:', re.IGNORECASE)
QUOTED_TEXT = re.compile(r'(["\'])(.+?)\1')
COORDINATE_PAIR = re.compile(r'\(\s*(\d+)\s*,\s*(\d+)\s*\)')

# Markdown decoration models like to put in front of lines
LINE_DECORATION = '*-#> \t'

NO_BUTTONS_PHRASE = 'no blue buttons detected'


class ParserState(Enum):
    NO_OPEN_RECORD = 'no_open_record'
    OPEN_RECORD = 'open_record'


@dataclass
class _OpenRecord:
    """Fields collected so far for the record being parsed."""
    text: str = ""
    position: Optional[Point] = None
    shape: str = ""

    def to_candidate(self) -> ButtonCandidate:
        return ButtonCandidate(text=self.text, position=self.position, shape=self.shape)


def _value_after_colon(line: str) -> str:
    colon = line.find(':')
    if colon < 0:
        return ""
    return line[colon + 1:].strip()


def find_quoted(line: str) -> Optional[str]:
    """First single- or double-quoted substring, verbatim."""
    match = QUOTED_TEXT.search(line)
    return match.group(2) if match else None


def find_coordinates(line: str) -> Optional[Point]:
    """First ``(x, y)`` pair of non-negative integers."""
    match = COORDINATE_PAIR.search(line)
    if not match:
        return None
    return Point(int(match.group(1)), int(match.group(2)))


def _parse_text(record: _OpenRecord, line: str) -> None:
    quoted = find_quoted(line)
    if quoted is not None:
        record.text = quoted
    else:
        record.text = _value_after_colon(line).strip('"\'')


def _parse_position(record: _OpenRecord, line: str) -> None:
    point = find_coordinates(line)
    if point is not None:
        record.position = point
    else:
        logger.debug(f"Unparsable position line: {line!r}")


def _parse_appearance(record: _OpenRecord, line: str) -> None:
    record.shape = _value_after_colon(line)


FieldHandler = Callable[[_OpenRecord, str], None]

# Priority order matters: the first matching prefix wins
FIELD_MATCHERS: List[Tuple[str, FieldHandler]] = [
    ('text:', _parse_text),
    ('position:', _parse_position),
    ('appearance:', _parse_appearance),
]


class ResponseParser:
    """
    Best-effort parser for button descriptions in model output.

    Never raises on unexpected input; the worst case is an empty list.
    Records without a label are dropped, records without coordinates are
    kept with ``position=None``.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.state = ParserState.NO_OPEN_RECORD
        self._record: Optional[_OpenRecord] = None
        self._results: List[ButtonCandidate] = []

    def _open(self) -> _OpenRecord:
        self._record = _OpenRecord()
        self.state = ParserState.OPEN_RECORD
        return self._record

    def _finalize(self) -> None:
        record = self._record
        if record is not None:
            if record.text:
                self._results.append(record.to_candidate())
            else:
                logger.debug("Discarding record without a label")
        self._record = None
        self.state = ParserState.NO_OPEN_RECORD

    def _feed(self, raw_line: str) -> None:
        line = raw_line.strip().lstrip(LINE_DECORATION).strip()
        if not line:
            return
        lower = line.lower()

        if RECORD_MARKER.match(lower):
            self._finalize()
            self._open()
            return

        for prefix, handler in FIELD_MATCHERS:
            if lower.startswith(prefix):
                if handler is _parse_text and self.state is ParserState.OPEN_RECORD and self._record.text:
                    # A second label means the model skipped the marker
                    self._finalize()
                record = self._record if self.state is ParserState.OPEN_RECORD else self._open()
                handler(record, line)
                return

        if self.state is ParserState.OPEN_RECORD:
            self._scan_fallback(line)

    def _scan_fallback(self, line: str) -> None:
        record = self._record
        if not record.text:
            quoted = find_quoted(line)
            if quoted:
                record.text = quoted
        if record.position is None:
            point = find_coordinates(line)
            if point is not None:
                record.position = point

    def parse(self, text: Optional[str]) -> List[ButtonCandidate]:
        """
        Extract button candidates from a model reply.

        Args:
            text: Raw reply text (may be empty or None)

        Returns:
            Candidates in the order they appear in the reply
        """
        self._reset()
        for line in (text or "").split('\n'):
            self._feed(line)
        self._finalize()

        results = self._results
        self._results = []
        logger.debug(f"Parsed {len(results)} button candidate(s)")
        return results


def parse_buttons(text: Optional[str]) -> List[ButtonCandidate]:
    """Convenience wrapper around ResponseParser.parse."""
    return ResponseParser().parse(text)


def reports_no_buttons(text: Optional[str]) -> bool:
    """True when the reply explicitly says nothing was found or never mentions a button."""
    lower = (text or "").lower()
    return NO_BUTTONS_PHRASE in lower or 'button' not in lower
