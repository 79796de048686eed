# app/domain/clip.py
from typing import Iterable, List

from app.domain.models import BackgroundRole, ClipRegion, SceneObject


def clip_for_frame(frame: SceneObject) -> ClipRegion:
    """Clip equal to the frame's current visual box, rounded the way the frame renders."""
    box = frame.box
    return ClipRegion(
        x=box.x,
        y=box.y,
        width=box.visual_width,
        height=box.visual_height,
        rx=frame.corner_radius * box.scale_x,
        ry=frame.corner_radius * box.scale_y,
        angle=frame.angle,
    )


def apply_clip(image: SceneObject, frame: SceneObject) -> None:
    if isinstance(image.role, BackgroundRole):
        # backgrounds fill the canvas and are never clipped
        image.clip = None
        return
    image.clip = clip_for_frame(frame)


def reclip_bound_images(frame: SceneObject, images: Iterable[SceneObject]) -> List[SceneObject]:
    touched = []
    for image in images:
        apply_clip(image, frame)
        touched.append(image)
    return touched
