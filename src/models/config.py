"""
Application configuration models

Loaded by ConfigManager from YAML. Every section and field has a default, so
a partial (or empty) file still yields a complete AppConfig.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from models.enums import LogLevel

T = TypeVar("T")


def _from_section(cls: Type[T], data: Optional[Mapping[str, Any]]) -> T:
    """Build a section dataclass, ignoring unknown keys."""
    if not isinstance(data, Mapping):
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class EditorConfig:
    history_limit: int = 50
    track_selection_in_history: bool = False


@dataclass
class PlaybackConfig:
    default_fps: float = 12
    min_speed_scale: float = 0.01
    max_speed_scale: float = 32.0
    initial_playing: bool = False
    frame_interval_ms: float = 16.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    use_colors: bool = True

    @property
    def log_level(self) -> LogLevel:
        """Configured level; unknown names fall back to INFO."""
        try:
            return LogLevel[str(self.level).upper()]
        except KeyError:
            return LogLevel.INFO


@dataclass
class AppConfig:
    editor: EditorConfig = field(default_factory=EditorConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AppConfig":
        data = data if isinstance(data, Mapping) else {}
        return cls(
            editor=_from_section(EditorConfig, data.get("editor")),
            playback=_from_section(PlaybackConfig, data.get("playback")),
            logging=_from_section(LoggingConfig, data.get("logging")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "editor": vars(self.editor).copy(),
            "playback": vars(self.playback).copy(),
            "logging": vars(self.logging).copy(),
        }
