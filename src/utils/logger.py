"""
Category logger for the sprite engines

Format:
[HH:MM:SS] CATEGORY   sym Message
           ├─ key: value
           └─ key: value

One process-wide Logger; modules hold BoundLoggers created at import time:

    log = get_category_logger(LogCategory.EDITOR)
    log.info("Frames removed", count=2, remaining=6)

Besides the console, every emitted record is handed to registered sinks
(e.g. an editor panel listing engine messages).
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, TextIO, Tuple

from models.enums import LogLevel, LogCategory

RESET = '\033[0m'

PALETTE = {
    'dim': '\033[2m',
    'red': '\033[31m',
    'green': '\033[32m',
    'yellow': '\033[33m',
    'white': '\033[37m',
    'blue': '\033[94m',
    'magenta': '\033[95m',
    'cyan': '\033[96m',
    'bright_white': '\033[97m',
    'bright_yellow': '\033[93m',
    'bright_green': '\033[92m',
}

CATEGORY_COLORS = {
    LogCategory.CONFIG: 'cyan',
    LogCategory.EDITOR: 'bright_green',
    LogCategory.COMPACTION: 'blue',
    LogCategory.PLAYBACK: 'bright_yellow',
    LogCategory.CODEC: 'cyan',
    LogCategory.EVENT: 'magenta',
    LogCategory.SYSTEM: 'bright_white',
}

# (symbol, color) per level
LEVEL_STYLE = {
    LogLevel.DEBUG: ('·', 'dim'),
    LogLevel.INFO: ('✓', 'green'),
    LogLevel.WARN: ('⚠', 'yellow'),
    LogLevel.ERROR: ('✗', 'red'),
}

LEVEL_ORDER = (LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR)

DETAIL_INDENT = " " * 11


@dataclass(frozen=True)
class LogRecord:
    """One emitted message with its rendered detail lines"""
    category: LogCategory
    level: LogLevel
    message: str
    details: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)


LogSink = Callable[[LogRecord], None]


def _detail(key: str, value) -> str:
    if isinstance(value, BaseException):
        value = f"{type(value).__name__}: {value}"
    return f"{key}: {value}"


class Logger:
    """
    Structured console logger.

    stream defaults to whatever sys.stdout is at write time, so redirected
    output (test capture, a replaced stdout) is honoured.
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream
        self._sinks: List[LogSink] = []

    def enabled_for(self, level: LogLevel) -> bool:
        return LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(self.min_level)

    def add_sink(self, sink: LogSink) -> Callable[[], None]:
        """Forward every emitted record to sink; returns a remover."""
        self._sinks.append(sink)

        def remove() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return remove

    def _paint(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{PALETTE.get(color, PALETTE['white'])}{text}{RESET}"

    def render(self, record: LogRecord) -> List[str]:
        """Console lines for a record (header plus tree-indented details)."""
        symbol, color = LEVEL_STYLE.get(record.level, ('·', 'white'))
        header = " ".join((
            record.timestamp.strftime('[%H:%M:%S]'),
            self._paint(record.category.name.ljust(10), CATEGORY_COLORS.get(record.category, 'white')),
            self._paint(symbol, color),
            self._paint(record.message, color),
        ))
        lines = [header]
        last = len(record.details) - 1
        for i, detail in enumerate(record.details):
            branch = "└─" if i == last else "├─"
            lines.append(f"{DETAIL_INDENT}{self._paint(branch, 'dim')} {detail}")
        return lines

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[list] = None,
        **kwargs
    ):
        """
        Log a structured message

        Args:
            category: Log category (EDITOR, PLAYBACK, etc.)
            message: Main message text
            level: Log level (DEBUG, INFO, WARN, ERROR)
            details: Detail strings shown below the message
            **kwargs: Additional key-value pairs shown as details

        Example:
            logger.log(LogCategory.PLAYBACK, "Animation finished", animation="idle", cursor=3)

            [14:23:45] PLAYBACK   ✓ Animation finished
                       ├─ animation: idle
                       └─ cursor: 3
        """
        if not self.enabled_for(level):
            return

        record = LogRecord(
            category=category,
            level=level,
            message=message,
            details=tuple(details or ()) + tuple(_detail(k, v) for k, v in kwargs.items()),
        )
        out = self.stream or sys.stdout
        for line in self.render(record):
            print(line, file=out)

        for sink in list(self._sinks):
            sink(record)

    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> 'BoundLogger':
        """Logger bound to one category."""
        return BoundLogger(self, category)


class BoundLogger:
    """Category-bound view of a Logger; the category can be overridden per call."""

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self._category = category

    @property
    def category(self) -> LogCategory:
        return self._category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        self._base.log(category or self._category, message, level, **kw)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)

    def with_category(self, category: LogCategory) -> 'BoundLogger':
        return BoundLogger(self._base, category)


_logger = Logger()


def get_logger() -> Logger:
    return _logger


def get_category_logger(category: LogCategory) -> BoundLogger:
    """Returns a logger bound to a specific category"""
    return _logger.for_category(category)


def configure_logger(min_level: LogLevel = LogLevel.INFO, use_colors: bool = True):
    """
    Configure the singleton in place.

    Bound loggers created at import time point at the same instance and pick
    up the new settings immediately.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
