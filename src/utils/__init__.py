"""
Utility functions for the sprite engines
"""

from .geometry import (
    snap_to_grid,
    normalize_rect,
    point_in_frame,
    merge_frames,
    slice_grid,
)

__all__ = [
    'snap_to_grid',
    'normalize_rect',
    'point_in_frame',
    'merge_frames',
    'slice_grid',
]
