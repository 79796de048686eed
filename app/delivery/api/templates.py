# app/delivery/api/templates.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config.database import get_db
from app.delivery.api.editor import get_editor, load_into_editor
from app.delivery.schemas.body import (
    SaveEditorBody,
    StoreTemplateBody,
    StoredTemplateOut,
    TemplateDocument,
    UpdateTemplateBody,
)
from app.domain.editor_service import EditorService
from app.domain.errors import UnsupportedFormat
from app.domain.template_serializer import parse_template
from app.infrastructure.database.models import Template

router = APIRouter(prefix="/templates")
logger = logging.getLogger("uvicorn.error")


def _normalize(document) -> TemplateDocument:
    try:
        parsed = parse_template(document)
    except UnsupportedFormat as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if parsed.canvas is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Stored templates need a canvas size.",
        )
    return parsed


def _out(template: Template, with_elements: bool = True) -> StoredTemplateOut:
    return StoredTemplateOut(
        id=template.id,
        name=template.name,
        canvas_width=template.canvas_width,
        canvas_height=template.canvas_height,
        elements=TemplateDocument.model_validate(template.elements) if with_elements else None,
    )


async def _get_or_404(db: AsyncSession, template_id: int) -> Template:
    template = await db.get(Template, template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


async def _store(db: AsyncSession, name: str, document: TemplateDocument) -> Template:
    template = Template(
        name=name,
        canvas_width=document.canvas.width,
        canvas_height=document.canvas.height,
        elements=document.model_dump(mode="json"),
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    logger.info(f"Template {template.id} '{name}' stored ({len(document.frames)} frame(s)).")
    return template


@router.get("")
async def index(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Template).order_by(Template.id.desc()))
    return {"data": [_out(t, with_elements=False).model_dump() for t in result.scalars()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def store(body: StoreTemplateBody, db: AsyncSession = Depends(get_db)):
    template = await _store(db, body.name, _normalize(body.document))
    return {"data": _out(template).model_dump(mode="json")}


@router.post("/from-editor", status_code=status.HTTP_201_CREATED)
async def store_from_editor(body: SaveEditorBody, db: AsyncSession = Depends(get_db),
                            editor: EditorService = Depends(get_editor)):
    template = await _store(db, body.name, _normalize(editor.serialize_template()))
    return {"data": _out(template).model_dump(mode="json")}


@router.get("/{template_id}")
async def show(template_id: int, db: AsyncSession = Depends(get_db)):
    template = await _get_or_404(db, template_id)
    return {"data": _out(template).model_dump(mode="json")}


@router.patch("/{template_id}")
async def update(template_id: int, body: UpdateTemplateBody, db: AsyncSession = Depends(get_db)):
    template = await _get_or_404(db, template_id)
    if body.name is not None:
        template.name = body.name
    if body.document is not None:
        document = _normalize(body.document)
        template.canvas_width = document.canvas.width
        template.canvas_height = document.canvas.height
        template.elements = document.model_dump(mode="json")
    await db.commit()
    await db.refresh(template)
    return {"data": _out(template).model_dump(mode="json")}


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def destroy(template_id: int, db: AsyncSession = Depends(get_db)):
    template = await _get_or_404(db, template_id)
    await db.delete(template)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{template_id}/load")
async def load(template_id: int, db: AsyncSession = Depends(get_db),
               editor: EditorService = Depends(get_editor)):
    template = await _get_or_404(db, template_id)
    return await load_into_editor(editor, template.elements)
