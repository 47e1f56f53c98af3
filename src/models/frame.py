"""
Frame model

A frame is one rectangular region of a sprite sheet, in source-image pixels.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace, asdict
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SpriteFrame:
    """
    Immutable frame value.

    id is the stable identity used by selection and clipboard; it never takes
    part in content comparison (see content_key).
    """
    id: str
    x: float = 0
    y: float = 0
    w: float = 0
    h: float = 0
    duration: Optional[float] = None   # ms, overrides animation timing
    image_ref: Optional[Any] = None    # opaque handle (usually an image URI)

    def with_changes(self, **patch) -> "SpriteFrame":
        """
        Return a copy with the given fields replaced.

        id is never patched; imageUri (the exchanged key) maps to image_ref and
        unknown keys are ignored.
        """
        if "imageUri" in patch and "image_ref" not in patch:
            patch["image_ref"] = patch.pop("imageUri")
        names = {f.name for f in fields(self)} - {"id"}
        changes = {k: v for k, v in patch.items() if k in names}
        if not changes:
            return self
        return replace(self, **changes)

    def content_key(self) -> Tuple[Any, ...]:
        """Equality key used by compaction: geometry, duration and image."""
        image = self.image_ref
        if not isinstance(image, (str, int, float, type(None))):
            image = repr(image)
        return (self.x, self.y, self.w, self.h, self.duration, image)

    def geometry(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
