"""Server-rendered landing and content pages."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.db.engine import get_db
from echosphere.services.content import get_page

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)

router = APIRouter(tags=["pages"])


def _render(template_name: str, **context) -> HTMLResponse:
    return HTMLResponse(_env.get_template(template_name).render(**context))


@router.get("/", response_class=HTMLResponse)
async def landing(db: AsyncSession = Depends(get_db)):
    return _render("landing.html.j2", organizations=await crud.list_organizations(db))


@router.get("/{page_id}", response_class=HTMLResponse)
async def content_page(page_id: str):
    page = get_page(page_id)
    if not page:
        raise HTTPException(404, "Page not found")
    return _render("content.html.j2", page=page)
