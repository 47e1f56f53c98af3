from codec.base import SpriteCodec, supports_import
from codec.default_codec import DefaultSpriteCodec, ExportOnlyCodec

__all__ = ["SpriteCodec", "supports_import", "DefaultSpriteCodec", "ExportOnlyCodec"]
