"""Geometry primitives: position, unscaled base size and independent scale factors."""
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class Rect:
    """Absolute axis-aligned rectangle in canvas units (top-left origin)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class Box:
    """Position, base size and scale of a paint object.

    The rendered ("visual") size is always derived as base × scale; snapping
    and fitting read the unscaled shape separately from the current stretch.
    """
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0

    @property
    def visual_width(self) -> float:
        return self.width * self.scale_x

    @property
    def visual_height(self) -> float:
        return self.height * self.scale_y

    def set_visual_size(self, width: Optional[float] = None, height: Optional[float] = None) -> None:
        """Solve the scale factors that render the box at the given visual size.

        An axis whose base dimension is 0 keeps its current scale.
        """
        if width is not None and self.width > 0:
            self.scale_x = width / self.width
        if height is not None and self.height > 0:
            self.scale_y = height / self.height

    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.visual_width, self.visual_height)
