# app/domain/template_serializer.py
import logging
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from app.delivery.schemas.body import TEMPLATE_VERSION, CanvasSize, FrameRecord, TemplateDocument
from app.domain.errors import UnsupportedFormat
from app.domain.models import BackgroundRole, FrameRole, SceneObject

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


def frame_record(frame: SceneObject) -> FrameRecord:
    role: FrameRole = frame.role
    return FrameRecord(
        id=role.frame_id,
        x=frame.box.x,
        y=frame.box.y,
        w=frame.box.visual_width,
        h=frame.box.visual_height,
        fit=role.fit,
        name=role.name,
    )


def background_source(background: Optional[SceneObject]) -> Optional[str]:
    """Reusable source of the background: the role tag first, then the object's own locator."""
    if background is None:
        return None
    if isinstance(background.role, BackgroundRole):
        return background.role.source_url
    return background.src or None


def serialize_template(canvas_width: int, canvas_height: int,
                       background: Optional[SceneObject],
                       frames: Iterable[SceneObject]) -> Dict[str, Any]:
    document = TemplateDocument(
        version=TEMPLATE_VERSION,
        canvas=CanvasSize(width=canvas_width, height=canvas_height),
        background=background_source(background),
        frames=[frame_record(f) for f in frames],
    )
    return document.model_dump(mode="json")


def _unwrap(data: Any):
    """Map the three accepted shapes onto the fields of the current one."""
    if isinstance(data, list):
        return "legacy-array", {"frames": data}

    if isinstance(data, dict) and "frames" in data:
        raw = {k: data[k] for k in ("version", "canvas", "background", "frames") if k in data}
        if "background" not in raw and "background_url" in data:
            raw["background"] = data["background_url"]
        return "current", raw

    if isinstance(data, dict) and isinstance(data.get("elements"), dict) and "frames" in data["elements"]:
        elements = data["elements"]
        raw = {"frames": elements["frames"]}
        if "version" in elements:
            raw["version"] = elements["version"]
        for key in ("background", "background_url"):
            value = elements.get(key, data.get(key))
            if value is not None:
                raw["background"] = value
                break
        canvas = elements.get("canvas", data.get("canvas"))
        if canvas is None and "canvas_width" in data and "canvas_height" in data:
            canvas = {"width": data["canvas_width"], "height": data["canvas_height"]}
        if canvas is not None:
            raw["canvas"] = canvas
        return "legacy-elements", raw

    return None, None


def parse_template(data: Any) -> TemplateDocument:
    """Validate any accepted template shape into a current-version document.

    Raises ``UnsupportedFormat`` without side effects when the input matches
    no shape or carries invalid records.
    """
    shape, raw = _unwrap(data)
    if shape is None:
        raise UnsupportedFormat(f"Unrecognized template document of type {type(data).__name__}")

    frames = raw.get("frames")
    if not isinstance(frames, list):
        raise UnsupportedFormat("Template 'frames' must be a list")
    raw["frames"] = [
        {**record, "name": record.get("name") or f"Frame {n}"} if isinstance(record, dict) else record
        for n, record in enumerate(frames, start=1)
    ]
    if raw.get("background") == "":
        raw["background"] = None

    try:
        document = TemplateDocument.model_validate(raw)
    except ValidationError as e:
        raise UnsupportedFormat(f"Invalid {shape} template: {e.error_count()} validation error(s)") from e

    if document.version != TEMPLATE_VERSION:
        raise UnsupportedFormat(f"Unsupported template version {document.version}")

    ids = [f.id for f in document.frames]
    if len(ids) != len(set(ids)):
        raise UnsupportedFormat("Template contains duplicate frame ids")

    logger.info(f"Parsed {shape} template with {len(document.frames)} frame(s).")
    return document
