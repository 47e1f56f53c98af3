"""
Tests for YAML configuration loading with includes and factory fallback.
"""

import pytest

from engine.clock import ManualClock
from engine.document_engine import DocumentEngine
from engine.playback_scheduler import PlaybackScheduler
from managers.config_manager import ConfigManager
from models.config import AppConfig, EditorConfig, LoggingConfig, PlaybackConfig
from models.enums import LogLevel
from utils.errors import ConfigError, SpriteCoreError
from utils.logger import configure_logger, get_logger


@pytest.fixture
def defaults(tmp_path):
    path = tmp_path / "defaults.yaml"
    path.write_text("editor:\n  history_limit: 7\n", encoding="utf-8")
    return path


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestLoad:
    def test_packaged_configuration(self):
        manager = ConfigManager()
        config = manager.load()

        assert not manager.used_defaults
        assert config.editor.history_limit == 50
        assert config.playback.frame_interval_ms == 16
        assert config.logging.log_level is LogLevel.INFO

    def test_includes_merge_in_order(self, tmp_path, defaults):
        write(tmp_path / "a.yaml", "editor:\n  history_limit: 10\nplayback:\n  default_fps: 24\n")
        write(tmp_path / "b.yaml", "editor:\n  history_limit: 20\n")
        main = write(tmp_path / "main.yaml", "include:\n  - a.yaml\n  - b.yaml\nlogging:\n  level: DEBUG\n")

        config = ConfigManager(main, defaults).load()

        assert config.editor.history_limit == 20
        assert config.playback.default_fps == 24
        assert config.logging.level == "DEBUG"

    def test_monolithic_file(self, tmp_path, defaults):
        main = write(tmp_path / "main.yaml", "editor:\n  track_selection_in_history: true\n")
        config = ConfigManager(main, defaults).load()
        assert config.editor.track_selection_in_history is True
        assert config.editor.history_limit == 50

    def test_empty_file_gives_defaults_of_every_section(self, tmp_path, defaults):
        main = write(tmp_path / "main.yaml", "")
        assert ConfigManager(main, defaults).load() == AppConfig()

    @pytest.mark.parametrize("text", [
        "include:\n  - missing.yaml\n",
        "editor: [unclosed\n",
        "- just\n- a list\n",
    ])
    def test_falls_back_to_factory_defaults(self, tmp_path, defaults, text):
        main = write(tmp_path / "main.yaml", text)
        manager = ConfigManager(main, defaults)

        config = manager.load()

        assert manager.used_defaults
        assert config.editor.history_limit == 7

    def test_missing_main_file(self, tmp_path, defaults):
        manager = ConfigManager(tmp_path / "nope.yaml", defaults)
        assert manager.load().editor.history_limit == 7
        assert manager.used_defaults

    def test_no_defaults_raises(self, tmp_path):
        manager = ConfigManager(tmp_path / "nope.yaml", tmp_path / "also-nope.yaml")
        with pytest.raises(ConfigError) as exc_info:
            manager.load()
        assert isinstance(exc_info.value, SpriteCoreError)


class TestModels:
    def test_unknown_keys_are_ignored(self):
        config = AppConfig.from_dict({
            "editor": {"history_limit": 5, "bogus": 1},
            "playback": "not a section",
            "unknown": {},
        })
        assert config.editor == EditorConfig(history_limit=5)
        assert config.playback == PlaybackConfig()

    def test_non_mapping_input(self):
        assert AppConfig.from_dict(None) == AppConfig()

    @pytest.mark.parametrize("name,level", [("debug", LogLevel.DEBUG), ("WARN", LogLevel.WARN), ("loud", LogLevel.INFO)])
    def test_log_level_names(self, name, level):
        assert LoggingConfig(level=name).log_level is level

    def test_to_dict_round_trips(self):
        config = AppConfig(editor=EditorConfig(history_limit=3))
        assert AppConfig.from_dict(config.to_dict()) == config


class TestApply:
    def test_apply_logging(self, tmp_path, defaults):
        logger = get_logger()
        saved = logger.min_level, logger.use_colors
        main = write(tmp_path / "main.yaml", "logging:\n  level: ERROR\n  use_colors: false\n")
        manager = ConfigManager(main, defaults)
        manager.load()
        try:
            manager.apply_logging()
            assert logger.min_level is LogLevel.ERROR
            assert logger.use_colors is False
        finally:
            configure_logger(*saved)

    def test_engine_from_config(self):
        engine = DocumentEngine.from_config(EditorConfig(history_limit=2, track_selection_in_history=True))
        assert engine.history_limit == 2
        assert engine.track_selection_in_history

    def test_scheduler_from_config(self, document):
        config = PlaybackConfig(initial_playing=True, frame_interval_ms=40, max_speed_scale=4)
        clock = ManualClock()
        scheduler = PlaybackScheduler.from_config(document, clock, config, animation="idle")

        assert scheduler.playing
        scheduler.set_speed_scale(10)
        assert scheduler.speed_scale == 4
        clock.advance(39)
        assert scheduler.frame_index == 0
        scheduler.dispose()
