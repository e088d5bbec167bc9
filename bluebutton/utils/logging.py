"""
Logging Setup

Console output for the operator, a DEBUG file log per session, and the
JSONL action log that records every analysis and mouse action.
"""

import json
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# Chatty at DEBUG: one line per HTTP connection, PNG chunk or mouse step
QUIET_LOGGERS = ('urllib3', 'PIL', 'pyautogui')


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name by severity."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # Other handlers see the same record object
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _wants_color(stream: TextIO, colored: bool) -> bool:
    if not colored or sys.platform == 'win32':
        return False
    isatty = getattr(stream, 'isatty', None)
    return bool(isatty and isatty())


def _session_log_path(log_file: Optional[str], log_dir: Optional[str]) -> Path:
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"bluebutton_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    colored: bool = True,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure the root logger for a harness session.

    Args:
        level: Console level name; unknown names fall back to INFO
        log_file: Explicit file for the DEBUG log
        log_dir: Directory for a timestamped DEBUG log (used if no log_file)
        colored: Color level names when the console is a terminal
        stream: Console stream (stdout by default)

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    stream = stream or sys.stdout

    root_logger = logging.getLogger()
    root_logger.handlers = []

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(numeric_level)
    formatter_class = ColoredFormatter if _wants_color(stream, colored) else logging.Formatter
    console_handler.setFormatter(formatter_class(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    root_logger.addHandler(console_handler)

    file_path = None
    if log_file or log_dir:
        file_path = _session_log_path(log_file, log_dir)
        file_handler = logging.FileHandler(file_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)

    # The root passes DEBUG records on only when a file handler wants them
    root_logger.setLevel(logging.DEBUG if file_path else numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if file_path:
        root_logger.info(f"Logging to file: {file_path}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class ActionLogger:
    """
    Specialized logger for tracking analyses and mouse actions.

    Logs actions with structured data for later analysis.
    """

    def __init__(self, log_dir: str = 'logs/actions'):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger('actions')

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        self.action_file = self.log_dir / f'actions_{timestamp}.jsonl'

    def log_action(self, action_type: str, details: dict, screenshot_path: Optional[str] = None):
        """Log an action with structured data."""
        entry = {
            'timestamp': datetime.now().isoformat(),
            'action_type': action_type,
            'details': details,
            'screenshot': screenshot_path,
        }

        self.logger.info(f"Action: {action_type} - {details}")

        with open(self.action_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(entry) + '\n')

    def log_move(self, x: int, y: int, label: str = ''):
        """Log a cursor move."""
        self.log_action('move', {'x': x, 'y': y, 'label': label})

    def log_click(self, x: int, y: int, label: str = '', button: str = 'left'):
        """Log a click action."""
        self.log_action('click', {'x': x, 'y': y, 'label': label, 'button': button})

    def log_skip(self, reason: str):
        self.log_action('skip', {'reason': reason})

    def log_analysis(self, region_name: str, detections: int, diagnostic: str = '',
                     screenshot_path: Optional[str] = None):
        """Log the outcome of one analysis cycle."""
        self.log_action(
            'analysis',
            {'region': region_name, 'detections': detections, 'diagnostic': diagnostic},
            screenshot_path
        )
