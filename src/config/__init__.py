"""Bundled YAML configuration (config.yaml and factory defaults)"""

from pathlib import Path

CONFIG_DIR = Path(__file__).parent
