# app/domain/models.py
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

from app.domain.geometry import Box, Rect

# --- FRAME DEFAULTS ---
FRAME_DEFAULT_WIDTH = 400
FRAME_DEFAULT_HEIGHT = 300
FRAME_CORNER_RADIUS = 12
FRAME_STYLE = {
    "fill": "rgba(59,130,246,0.15)",
    "stroke": "#3b82f6",
    "stroke_width": 1,
    "stroke_uniform": True,
}


class FitPolicy(str, Enum):
    COVER = "cover"
    CONTAIN = "contain"


# Role tags carried in each scene object's metadata slot.

@dataclass
class FrameRole:
    frame_id: str
    name: str
    fit: FitPolicy = FitPolicy.COVER


@dataclass
class ImageRole:
    frame_of: Optional[str]
    source: str
    native_width: Optional[int] = None   # unknown until the source resolves
    native_height: Optional[int] = None


@dataclass(frozen=True)
class BackgroundRole:
    source_url: str


Role = Union[FrameRole, ImageRole, BackgroundRole]


@dataclass
class ClipRegion:
    """Clip boundary in absolute canvas coordinates, independent of the clipped object's transform."""
    x: float
    y: float
    width: float
    height: float
    rx: float = 0.0
    ry: float = 0.0
    angle: float = 0.0   # degrees, the frame's rotation about (x, y)

    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


def new_object_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SceneObject:
    kind: str                                  # "rect" | "image"
    box: Box = field(default_factory=Box)
    role: Optional[Role] = None
    angle: float = 0.0
    clip: Optional[ClipRegion] = None
    src: Optional[str] = None                  # underlying resource locator for images
    corner_radius: float = 0.0
    style: Dict[str, object] = field(default_factory=dict)
    object_id: str = field(default_factory=new_object_id)

    @property
    def is_frame(self) -> bool:
        return isinstance(self.role, FrameRole)

    @property
    def frame_of(self) -> Optional[str]:
        if isinstance(self.role, ImageRole):
            return self.role.frame_of
        return None


def make_frame(frame_id: str, name: str, fit: FitPolicy, box: Box) -> SceneObject:
    return SceneObject(
        kind="rect",
        box=box,
        role=FrameRole(frame_id=frame_id, name=name, fit=fit),
        corner_radius=FRAME_CORNER_RADIUS,
        style=dict(FRAME_STYLE),
        object_id=frame_id,
    )
