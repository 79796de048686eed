# app/infrastructure/scene/surface.py
from typing import Dict, List, Optional, Tuple

from app.domain.models import FrameRole, ImageRole, SceneObject


class Viewport:
    """View-only zoom/pan transform. Never persisted."""

    def __init__(self, zoom_min: float = 0.1, zoom_max: float = 10.0):
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.reset()

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def zoom_to_point(self, point: Tuple[float, float], zoom: float) -> float:
        """Zoom keeping the given canvas point fixed on screen."""
        zoom = max(self.zoom_min, min(self.zoom_max, zoom))
        px, py = point
        # screen = canvas * zoom + pan; keep screen position of the point constant
        sx = px * self.zoom + self.pan_x
        sy = py * self.zoom + self.pan_y
        self.zoom = zoom
        self.pan_x = sx - px * zoom
        self.pan_y = sy - py * zoom
        return self.zoom

    def to_canvas(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return ((screen_x - self.pan_x) / self.zoom, (screen_y - self.pan_y) / self.zoom)


class SceneSurface:
    """In-memory scene graph standing in for the rendering surface.

    Holds paint objects in z-order (paint order), an optional background
    slot and the logical canvas size.
    """

    def __init__(self, width: int, height: int, zoom_min: float = 0.1, zoom_max: float = 10.0):
        self.width = width
        self.height = height
        self.viewport = Viewport(zoom_min, zoom_max)
        self.background: Optional[SceneObject] = None
        self._objects: List[SceneObject] = []
        self._index: Dict[str, SceneObject] = {}

    def set_dimensions(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def add(self, obj: SceneObject) -> SceneObject:
        if obj.object_id in self._index:
            raise ValueError(f"Object '{obj.object_id}' already on the surface")
        self._objects.append(obj)
        self._index[obj.object_id] = obj
        return obj

    def remove(self, obj: SceneObject) -> None:
        if self._index.pop(obj.object_id, None) is not None:
            self._objects.remove(obj)

    def get(self, object_id: str) -> Optional[SceneObject]:
        return self._index.get(object_id)

    def contains(self, obj: SceneObject) -> bool:
        return self._index.get(obj.object_id) is obj

    def objects(self) -> List[SceneObject]:
        return list(self._objects)

    def frames(self) -> List[SceneObject]:
        return [o for o in self._objects if isinstance(o.role, FrameRole)]

    def find_frame(self, frame_id: str) -> Optional[SceneObject]:
        for obj in self._objects:
            if isinstance(obj.role, FrameRole) and obj.role.frame_id == frame_id:
                return obj
        return None

    def images_bound_to(self, frame_id: str) -> List[SceneObject]:
        return [o for o in self._objects if isinstance(o.role, ImageRole) and o.role.frame_of == frame_id]

    def clear(self) -> None:
        self._objects.clear()
        self._index.clear()
        self.background = None
