from pydantic import BaseModel, Field
from typing import Any, List, Optional

from app.domain.models import FitPolicy

TEMPLATE_VERSION = 1

# --- Template document (wire shape, current version) ---

class CanvasSize(BaseModel):
    width: int = Field(ge=1, le=10000)
    height: int = Field(ge=1, le=10000)

class FrameRecord(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    x: float
    y: float
    w: float = Field(gt=0)                 # visual width
    h: float = Field(gt=0)                 # visual height
    fit: FitPolicy = FitPolicy.COVER
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)

class TemplateDocument(BaseModel):
    version: int = TEMPLATE_VERSION
    canvas: Optional[CanvasSize] = None    # absent only in legacy shapes
    background: Optional[str] = None
    frames: List[FrameRecord] = Field(default_factory=list)

# --- Editor requests ---

class FrameUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    fit: Optional[FitPolicy] = None
    x: Optional[float] = None
    y: Optional[float] = None
    w: Optional[float] = Field(default=None, gt=0)
    h: Optional[float] = Field(default=None, gt=0)

class FrameTransform(BaseModel):
    x: Optional[float] = None
    y: Optional[float] = None
    scale_x: Optional[float] = Field(default=None, gt=0)
    scale_y: Optional[float] = Field(default=None, gt=0)
    angle: Optional[float] = None
    final: bool = False                    # drag/resize completed

class BindImageBody(BaseModel):
    source: str                            # URL, path or base64 (data URLs supported)
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)

class BackgroundBody(BaseModel):
    source_url: str

class SelectionBody(BaseModel):
    object_id: Optional[str] = None

class ZoomBody(BaseModel):
    factor: float = Field(gt=0)
    point_x: Optional[float] = None
    point_y: Optional[float] = None

# --- Editor responses ---

class ClipOut(BaseModel):
    x: float
    y: float
    width: float
    height: float
    rx: float
    ry: float
    angle: float = 0.0

class FrameOut(BaseModel):
    id: str
    name: str
    fit: FitPolicy
    x: float
    y: float
    w: float
    h: float
    base_width: float
    base_height: float
    scale_x: float
    scale_y: float

class ImageOut(BaseModel):
    id: str
    frame_of: Optional[str]
    source: str
    fitted: bool
    x: float
    y: float
    scale_x: float
    scale_y: float
    clip: Optional[ClipOut] = None

# --- Template store ---

class StoreTemplateBody(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    document: Any                          # any recognized template shape

class UpdateTemplateBody(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    document: Optional[Any] = None

class SaveEditorBody(BaseModel):
    name: str = Field(min_length=1, max_length=120)

class StoredTemplateOut(BaseModel):
    id: int
    name: str
    canvas_width: int
    canvas_height: int
    elements: Optional[TemplateDocument] = None
