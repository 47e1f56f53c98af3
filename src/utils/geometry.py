"""
Rectangle helpers for sprite-sheet slicing

Rects are anything exposing x, y, w, h (attributes or mapping keys).
"""

import math
from typing import Any, List, NamedTuple, Optional, Sequence


class Rect(NamedTuple):
    x: float
    y: float
    w: float
    h: float


class Point(NamedTuple):
    x: float
    y: float


def _as_rect(value: Any) -> Rect:
    if isinstance(value, Rect):
        return value
    if isinstance(value, dict):
        return Rect(value["x"], value["y"], value["w"], value["h"])
    return Rect(value.x, value.y, value.w, value.h)


def snap_to_grid(value: float, grid_size: float, origin: float = 0) -> float:
    """Snap a scalar to the nearest grid unit; invalid grid leaves it untouched."""
    if not math.isfinite(grid_size) or grid_size <= 0:
        return value
    if not math.isfinite(value):
        return value
    offset = value - origin
    # halves round toward +inf
    snapped = math.floor(offset / grid_size + 0.5) * grid_size
    return origin + snapped


def normalize_rect(rect: Any) -> Rect:
    """Rect with non-negative width and height."""
    x, y, w, h = _as_rect(rect)
    if w < 0:
        x += w
        w = abs(w)
    if h < 0:
        y += h
        h = abs(h)
    return Rect(x, y, w, h)


def point_in_frame(point: Any, frame: Any) -> bool:
    """Inclusive start, exclusive end."""
    px, py = (point["x"], point["y"]) if isinstance(point, dict) else (point[0], point[1])
    rect = normalize_rect(frame)
    return rect.x <= px < rect.x + rect.w and rect.y <= py < rect.y + rect.h


def merge_frames(frames: Sequence[Any]) -> Optional[Rect]:
    """Bounding box containing every frame, None for an empty input."""
    if not frames:
        return None
    rects = [normalize_rect(frame) for frame in frames]
    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    max_x = max(r.x + r.w for r in rects)
    max_y = max(r.y + r.h for r in rects)
    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        return None
    return Rect(min_x, min_y, max(0, max_x - min_x), max(0, max_y - min_y))


def slice_grid(
    columns: int,
    rows: int,
    cell_width: float,
    cell_height: float,
    offset_x: float = 0,
    offset_y: float = 0,
    separation_x: float = 0,
    separation_y: float = 0,
) -> List[Rect]:
    """
    Cut a sprite sheet into a row-major grid of cells.

    Args:
        columns / rows: Grid dimensions (non-positive -> empty result)
        cell_width / cell_height: Size of each cell in pixels
        offset_x / offset_y: Position of the first cell
        separation_x / separation_y: Gap between neighbouring cells

    Returns:
        Rects ordered left-to-right, top-to-bottom
    """
    if columns <= 0 or rows <= 0 or cell_width <= 0 or cell_height <= 0:
        return []
    cells = []
    for row in range(rows):
        for col in range(columns):
            cells.append(Rect(
                offset_x + col * (cell_width + separation_x),
                offset_y + row * (cell_height + separation_y),
                cell_width,
                cell_height,
            ))
    return cells
