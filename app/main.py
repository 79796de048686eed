# app/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config.database import close_db, init_db
from app.config.settings import settings
from app.delivery.api.editor import router as editor_router
from app.delivery.api.templates import router as templates_router
from app.domain.editor_service import EditorService
from app.domain.errors import FrameNotFound
from app.infrastructure.images.loader import ImageLoader

logger = logging.getLogger("uvicorn.error")

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.editor = EditorService(loader=ImageLoader())
    logger.info(f"Service '{settings.PROJECT_NAME}' started (mode: {settings.ENVIRONMENT}).")
    logger.info(f"Canvas {settings.CANVAS_WIDTH}x{settings.CANVAS_HEIGHT} ready.")
    yield
    logger.info("Dropping pending editor completions...")
    app.state.editor.clear()
    await close_db()
    logger.info("Service stopped.")

app = FastAPI(
    title="Frame Layout Service",
    description="Layout engine for a compositing editor: frames, fitted images, clip regions, grid snapping and template documents",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(FrameNotFound)
async def frame_not_found_handler(request: Request, exc: FrameNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

app.include_router(editor_router, prefix=settings.API_V1_STR)
app.include_router(templates_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": "Frame Layout Service", "version": "1.0.0", "status": "ok"}

@app.get("/health")
async def health_check(request: Request):
    editor = getattr(request.app.state, "editor", None)
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "editor_ready": editor is not None,
        "frames": len(editor.list_frames()) if editor else 0,
    }
