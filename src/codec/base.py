"""
Codec contract

A codec turns a SpriteDocument into an exchange value (to_json) and,
optionally, back into a Snapshot (from_json). from_json is not part of the
Protocol: export-only codecs simply do not define it, and
DocumentEngine.import_json raises CodecCapabilityError for them.
"""

from typing import Any, Protocol, runtime_checkable

from models.document import SpriteDocument


@runtime_checkable
class SpriteCodec(Protocol):
    name: str
    version: int

    def to_json(self, document: SpriteDocument) -> Any: ...


def supports_import(codec: Any) -> bool:
    return callable(getattr(codec, "from_json", None))
