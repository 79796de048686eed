# app/domain/snap.py
import math

from app.domain.geometry import Box

GRID_SIZE = 20


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def snap_value(value: float, grid: int = GRID_SIZE) -> float:
    return round_half_up(value / grid) * grid


def snap_size(value: float, grid: int = GRID_SIZE) -> float:
    return max(grid, snap_value(value, grid))


def snap_box(box: Box, grid: int = GRID_SIZE) -> Box:
    """Quantize position and visual size to the grid, in place.

    Scale factors are re-derived from the base size; snapping a box that is
    already on the grid leaves it unchanged.
    """
    box.x = snap_value(box.x, grid)
    box.y = snap_value(box.y, grid)
    box.set_visual_size(snap_size(box.visual_width, grid), snap_size(box.visual_height, grid))
    return box
