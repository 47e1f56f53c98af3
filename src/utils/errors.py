"""
Exception hierarchy

Only programming/configuration mistakes raise. Out-of-range or empty
requests are no-ops and are reported by returning the unchanged value.
"""


class SpriteCoreError(Exception):
    """Base class for all errors raised by the sprite engines"""


class CodecCapabilityError(SpriteCoreError):
    """Raised when importing through a codec that cannot deserialize"""

    def __init__(self, codec_name: str):
        super().__init__(f'Codec "{codec_name}" does not support from_json.')
        self.codec_name = codec_name


class ConfigError(SpriteCoreError):
    """Raised when no configuration (not even factory defaults) can be loaded"""
