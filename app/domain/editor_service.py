# app/domain/editor_service.py
import asyncio
import logging
import time
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.config.settings import settings
from app.delivery.schemas.body import TemplateDocument
from app.domain.clip import apply_clip, reclip_bound_images
from app.domain.errors import FrameNotFound, InvalidSource, StaleCompletion
from app.domain.fit import place_image
from app.domain.geometry import Box, Rect
from app.domain.models import (
    FRAME_DEFAULT_HEIGHT,
    FRAME_DEFAULT_WIDTH,
    BackgroundRole,
    FitPolicy,
    ImageRole,
    SceneObject,
    make_frame,
    new_object_id,
)
from app.domain.snap import GRID_SIZE, snap_box
from app.domain.template_serializer import parse_template, serialize_template
from app.infrastructure.images.loader import ImageLoader
from app.infrastructure.scene.surface import SceneSurface

BACKGROUND_KEY = "background"

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


class EditorService:
    """Owns the live arrangement: surface, selection and pending async completions.

    All geometry runs synchronously. Resolving an image's native size and
    fetching a background are the only suspending steps; they run as tasks
    tagged with the generation current at scheduling time and are dropped
    when that generation has been superseded.
    """

    def __init__(self, loader: Optional[ImageLoader] = None,
                 canvas_width: int = settings.CANVAS_WIDTH,
                 canvas_height: int = settings.CANVAS_HEIGHT):
        self.loader = loader or ImageLoader()
        self.surface = SceneSurface(canvas_width, canvas_height, settings.ZOOM_MIN, settings.ZOOM_MAX)
        self.generation = 0
        self.active_object_id: Optional[str] = None
        self._background_request = 0
        self._pending: Dict[str, asyncio.Task] = {}
        self._deferred: Dict[str, Callable[[], Awaitable]] = {}   # scheduled outside a running loop

    # --- Frames ---

    def list_frames(self) -> List[SceneObject]:
        return self.surface.frames()

    def get_frame(self, frame_id: str) -> SceneObject:
        frame = self.surface.find_frame(frame_id)
        if frame is None:
            raise FrameNotFound(frame_id)
        return frame

    def images_bound_to(self, frame_id: str) -> List[SceneObject]:
        return self.surface.images_bound_to(frame_id)

    def create_frame(self) -> SceneObject:
        n = len(self.surface.frames()) + 1
        box = Box(
            x=self.surface.width / 2 - FRAME_DEFAULT_WIDTH / 2,
            y=self.surface.height / 2 - FRAME_DEFAULT_HEIGHT / 2,
            width=FRAME_DEFAULT_WIDTH,
            height=FRAME_DEFAULT_HEIGHT,
        )
        snap_box(box)
        frame = make_frame(new_object_id(), f"Frame {n}", FitPolicy.COVER, box)
        self.surface.add(frame)
        self.active_object_id = frame.object_id
        logger.info(f"Frame '{frame.role.name}' ({frame.role.frame_id}) created at ({box.x:g},{box.y:g}).")
        return frame

    def delete_frame(self, frame_id: str) -> None:
        frame = self.get_frame(frame_id)
        self.surface.remove(frame)
        if self.active_object_id == frame.object_id:
            self.active_object_id = None
        orphans = self.surface.images_bound_to(frame_id)
        if orphans:
            logger.info(f"Frame {frame_id} deleted; {len(orphans)} bound image(s) left orphaned.")
        else:
            logger.info(f"Frame {frame_id} deleted.")

    def update_frame(self, frame_id: str, **fields) -> SceneObject:
        """Apply a field edit (name, fit, x, y, w, h) and complete it on the grid."""
        frame = self.get_frame(frame_id)
        if fields.get("name") == "":
            raise ValueError("Frame name must not be empty")
        role = frame.role
        if fields.get("name") is not None:
            role.name = fields["name"]
        if fields.get("fit") is not None:
            role.fit = FitPolicy(fields["fit"])
        if fields.get("x") is not None:
            frame.box.x = fields["x"]
        if fields.get("y") is not None:
            frame.box.y = fields["y"]
        frame.box.set_visual_size(fields.get("w"), fields.get("h"))
        return self.complete_transform(frame_id)

    def transform_frame(self, frame_id: str, x: Optional[float] = None, y: Optional[float] = None,
                        scale_x: Optional[float] = None, scale_y: Optional[float] = None,
                        angle: Optional[float] = None) -> SceneObject:
        """Drag/resize in progress: bound images follow without snapping."""
        frame = self.get_frame(frame_id)
        if x is not None:
            frame.box.x = x
        if y is not None:
            frame.box.y = y
        if scale_x is not None:
            frame.box.scale_x = scale_x
        if scale_y is not None:
            frame.box.scale_y = scale_y
        if angle is not None:
            frame.angle = angle
        self.refresh_frame(frame)
        return frame

    def complete_transform(self, frame_id: str) -> SceneObject:
        frame = self.get_frame(frame_id)
        snap_box(frame.box)
        self.refresh_frame(frame)
        return frame

    def refresh_frame(self, frame: SceneObject) -> None:
        """Re-fit and re-clip every image bound to the frame."""
        images = self.surface.images_bound_to(frame.role.frame_id)
        for image in images:
            try:
                self._fit_image(image, frame)
            except InvalidSource:
                logger.debug(f"Image {image.object_id} has no native size yet; fit deferred.")
        reclip_bound_images(frame, images)

    # --- Images ---

    def bind_image(self, frame_id: str, source: str,
                   width: Optional[int] = None, height: Optional[int] = None) -> SceneObject:
        """Bind an image source into a frame.

        With a known native size the image is fitted immediately; otherwise
        the size is resolved in the background and the fit applied when it
        arrives.
        """
        frame = self.get_frame(frame_id)
        image = SceneObject(
            kind="image",
            src=source,
            role=ImageRole(frame_of=frame_id, source=source, native_width=width, native_height=height),
        )
        self.surface.add(image)
        apply_clip(image, frame)
        try:
            self._fit_image(image, frame)
        except InvalidSource:
            self._schedule(image.object_id, partial(self._resolve_image, image, self.generation))
        logger.info(f"Image {image.object_id} bound to frame {frame_id}.")
        return image

    def _fit_image(self, image: SceneObject, frame: SceneObject) -> None:
        role: ImageRole = image.role
        placement = place_image(role.native_width, role.native_height, frame.box.bounds(), frame.role.fit)
        image.box = Box(
            x=placement.x,
            y=placement.y,
            width=role.native_width,
            height=role.native_height,
            scale_x=placement.scale,
            scale_y=placement.scale,
        )

    async def _resolve_image(self, image: SceneObject, generation: int) -> None:
        role: ImageRole = image.role
        try:
            width, height = await self.loader.resolve_size(role.source)
        except InvalidSource as e:
            logger.warning(f"Image {image.object_id} left unfitted: {e}")
            return
        try:
            self._ensure_current(generation)
            if not self.surface.contains(image):
                raise StaleCompletion(f"Image {image.object_id} was removed")
            frame = self.surface.find_frame(role.frame_of)
            if frame is None:
                raise StaleCompletion(f"Frame {role.frame_of} no longer exists")
        except StaleCompletion as e:
            logger.debug(f"Dropping stale image size: {e}")
            return
        role.native_width, role.native_height = width, height
        self._fit_image(image, frame)
        apply_clip(image, frame)
        logger.info(f"Image {image.object_id} fitted into frame {role.frame_of} ({width}x{height}, {frame.role.fit.value}).")

    # --- Background ---

    def set_background(self, source_url: str) -> Optional[asyncio.Task]:
        """Fetch the source and install it as a cover-fitted background once it resolves."""
        self._background_request += 1
        return self._schedule(BACKGROUND_KEY,
                              partial(self._install_background, source_url, self.generation, self._background_request))

    def clear_background(self) -> None:
        self._cancel(BACKGROUND_KEY)
        self._background_request += 1
        self.surface.background = None

    async def _install_background(self, source_url: str, generation: int, request: int) -> Optional[SceneObject]:
        try:
            iw, ih = await self.loader.resolve_size(source_url)
        except InvalidSource as e:
            logger.warning(f"Background '{source_url[:70]}' could not be loaded, canvas has no background: {e}")
            return None
        try:
            self._ensure_current(generation)
            if request != self._background_request:
                raise StaleCompletion("Background was replaced")
        except StaleCompletion as e:
            logger.debug(f"Dropping stale background: {e}")
            return None
        canvas = Rect(0, 0, self.surface.width, self.surface.height)
        placement = place_image(iw, ih, canvas, FitPolicy.COVER)
        background = SceneObject(
            kind="image",
            src=source_url,
            role=BackgroundRole(source_url=source_url),
            box=Box(x=placement.x, y=placement.y, width=iw, height=ih,
                    scale_x=placement.scale, scale_y=placement.scale),
        )
        self.surface.background = background
        logger.info(f"Background installed from '{source_url[:70]}' ({iw}x{ih}).")
        return background

    # --- Templates ---

    def serialize_template(self) -> Dict[str, Any]:
        return serialize_template(self.surface.width, self.surface.height,
                                  self.surface.background, self.surface.frames())

    def load_template(self, data: Any) -> TemplateDocument:
        """Replace the live arrangement with a template document.

        The document is fully validated before anything changes; a background
        source is fetched afterwards and its failure never blocks the layout.
        """
        document = parse_template(data)
        start_time = time.perf_counter()
        logger.info(f"=== START LOADING template ({len(document.frames)} frame(s)) ===")

        self.clear()
        if document.canvas is not None:
            self.surface.set_dimensions(document.canvas.width, document.canvas.height)
        for record in document.frames:
            # frames never load smaller than one grid unit
            box = Box(x=record.x, y=record.y, width=max(record.w, GRID_SIZE), height=max(record.h, GRID_SIZE))
            frame = make_frame(record.id, record.name, record.fit, box)
            self.surface.add(frame)
            self.refresh_frame(frame)
        if document.background:
            self.set_background(document.background)

        logger.info(f"=== COMPLETED LOADING template in {time.perf_counter() - start_time:.3f}s ===")
        return document

    def clear(self) -> None:
        """Drop all frames, images and the background; pending completions become stale."""
        self.generation += 1
        for key in list(self._pending) + list(self._deferred):
            self._cancel(key)
        self._background_request += 1
        self.surface.clear()
        self.active_object_id = None

    # --- Selection & view ---

    def select(self, object_id: Optional[str]) -> Optional[SceneObject]:
        if object_id is None:
            self.active_object_id = None
            return None
        obj = self.surface.get(object_id)
        if obj is None:
            raise FrameNotFound(object_id)
        self.active_object_id = object_id
        return obj

    def zoom_by(self, factor: float, point: Optional[Tuple[float, float]] = None) -> float:
        viewport = self.surface.viewport
        if point is None:
            point = (self.surface.width / 2, self.surface.height / 2)
        return viewport.zoom_to_point(point, viewport.zoom * factor)

    def reset_view(self) -> None:
        self.surface.viewport.reset()

    # --- Pending completions ---

    def _ensure_current(self, generation: int) -> None:
        if generation != self.generation:
            raise StaleCompletion(f"Generation {generation} superseded by {self.generation}")

    def _schedule(self, key: str, factory: Callable[[], Awaitable]) -> Optional[asyncio.Task]:
        """Start ``factory()`` as a task, or hold it until ``wait_pending`` when no loop is running."""
        self._cancel(key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deferred[key] = factory
            return None
        task = loop.create_task(factory())
        self._pending[key] = task

        def _done(t: asyncio.Task, key=key):
            if self._pending.get(key) is t:
                del self._pending[key]

        task.add_done_callback(_done)
        return task

    def _cancel(self, key: str) -> None:
        self._deferred.pop(key, None)
        task = self._pending.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    @property
    def has_pending(self) -> bool:
        return bool(self._pending or self._deferred)

    async def wait_pending(self) -> None:
        """Start deferred completions, then wait until every one has run (or been cancelled)."""
        for key, factory in list(self._deferred.items()):
            self._schedule(key, factory)
        while self._pending:
            tasks = list(self._pending.values())
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for task, result in zip(tasks, results):
                if isinstance(result, Exception):
                    logger.error(f"Pending completion failed: {type(result).__name__}: {result}")
                self._pending = {k: t for k, t in self._pending.items() if t is not task}
