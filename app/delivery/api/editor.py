# app/delivery/api/editor.py
from fastapi import APIRouter, Body, Request, Depends, HTTPException, status
from fastapi.responses import Response
from typing import Any, List
import logging
import traceback

from app.delivery.schemas.body import (
    BackgroundBody,
    BindImageBody,
    ClipOut,
    FrameOut,
    FrameTransform,
    FrameUpdate,
    ImageOut,
    SelectionBody,
    ZoomBody,
)
from app.domain.editor_service import EditorService
from app.domain.errors import UnsupportedFormat
from app.domain.models import SceneObject

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def get_editor(request: Request) -> EditorService:
    service = getattr(request.app.state, "editor", None)
    if service is None:
        logger.error("Editor service not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready. Please try again in a moment.",
        )
    return service


def frame_out(frame: SceneObject) -> FrameOut:
    box = frame.box
    return FrameOut(
        id=frame.role.frame_id,
        name=frame.role.name,
        fit=frame.role.fit,
        x=box.x,
        y=box.y,
        w=box.visual_width,
        h=box.visual_height,
        base_width=box.width,
        base_height=box.height,
        scale_x=box.scale_x,
        scale_y=box.scale_y,
    )


def image_out(image: SceneObject) -> ImageOut:
    clip = image.clip
    return ImageOut(
        id=image.object_id,
        frame_of=image.frame_of,
        source=image.role.source,
        fitted=image.role.native_width is not None and image.role.native_height is not None,
        x=image.box.x,
        y=image.box.y,
        scale_x=image.box.scale_x,
        scale_y=image.box.scale_y,
        clip=ClipOut(x=clip.x, y=clip.y, width=clip.width, height=clip.height, rx=clip.rx, ry=clip.ry, angle=clip.angle) if clip else None,
    )


# --- Frames ---

@router.get("/frames", response_model=List[FrameOut])
async def list_frames(editor: EditorService = Depends(get_editor)):
    return [frame_out(f) for f in editor.list_frames()]


@router.post("/frames", response_model=FrameOut, status_code=status.HTTP_201_CREATED)
async def create_frame(editor: EditorService = Depends(get_editor)):
    return frame_out(editor.create_frame())


@router.patch("/frames/{frame_id}", response_model=FrameOut)
async def update_frame(frame_id: str, body: FrameUpdate, editor: EditorService = Depends(get_editor)):
    return frame_out(editor.update_frame(frame_id, **body.model_dump(exclude_none=True)))


@router.delete("/frames/{frame_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_frame(frame_id: str, editor: EditorService = Depends(get_editor)):
    editor.delete_frame(frame_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/frames/{frame_id}/transform", response_model=FrameOut)
async def transform_frame(frame_id: str, body: FrameTransform, editor: EditorService = Depends(get_editor)):
    frame = editor.transform_frame(
        frame_id, x=body.x, y=body.y, scale_x=body.scale_x, scale_y=body.scale_y, angle=body.angle,
    )
    if body.final:
        frame = editor.complete_transform(frame_id)
    return frame_out(frame)


# --- Images ---

@router.post("/frames/{frame_id}/images", response_model=ImageOut, status_code=status.HTTP_201_CREATED)
async def bind_image(frame_id: str, body: BindImageBody, editor: EditorService = Depends(get_editor)):
    image = editor.bind_image(frame_id, body.source, width=body.width, height=body.height)
    await editor.wait_pending()
    return image_out(image)


@router.get("/frames/{frame_id}/images", response_model=List[ImageOut])
async def list_bound_images(frame_id: str, editor: EditorService = Depends(get_editor)):
    editor.get_frame(frame_id)
    return [image_out(i) for i in editor.images_bound_to(frame_id)]


# --- Selection, view ---

@router.post("/selection")
async def select(body: SelectionBody, editor: EditorService = Depends(get_editor)):
    editor.select(body.object_id)
    return {"active_object_id": editor.active_object_id}


@router.post("/view/zoom")
async def zoom(body: ZoomBody, editor: EditorService = Depends(get_editor)):
    point = (body.point_x, body.point_y) if body.point_x is not None and body.point_y is not None else None
    return {"zoom": editor.zoom_by(body.factor, point)}


@router.post("/view/reset")
async def reset_view(editor: EditorService = Depends(get_editor)):
    editor.reset_view()
    return {"zoom": editor.surface.viewport.zoom}


# --- Background ---

@router.put("/background")
async def set_background(body: BackgroundBody, editor: EditorService = Depends(get_editor)):
    editor.set_background(body.source_url)
    await editor.wait_pending()
    background = editor.surface.background
    installed = background is not None and background.src == body.source_url
    return {"background": body.source_url if installed else None, "installed": installed}


@router.delete("/background", status_code=status.HTTP_204_NO_CONTENT)
async def clear_background(editor: EditorService = Depends(get_editor)):
    editor.clear_background()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Template ---

@router.get("/template")
async def serialize_template(editor: EditorService = Depends(get_editor)):
    return editor.serialize_template()


@router.post("/template")
async def load_template(document: Any = Body(...), editor: EditorService = Depends(get_editor)):
    return await load_into_editor(editor, document)


async def load_into_editor(editor: EditorService, document: Any) -> dict:
    try:
        editor.load_template(document)
        await editor.wait_pending()
        return editor.serialize_template()
    except UnsupportedFormat as e:
        logger.warning(f"Template load refused: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except Exception as e:
        logger.error(f"=== TEMPLATE LOAD ERROR: {e} ===\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while loading template.",
        )
