from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form

from echosphere.dependencies import get_settings_dep
from echosphere.config import Settings
from echosphere.services.image_store import save_upload

router = APIRouter(tags=["uploads"])


@router.post("/api/uploads", status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    organization_id: str = Form(...),
    blur: bool = Form(False),
    settings: Settings = Depends(get_settings_dep),
):
    data = await file.read()
    if not data:
        raise HTTPException(422, "Empty upload")
    if len(data) > settings.storage.max_upload_bytes:
        raise HTTPException(413, "File too large")

    url = await save_upload(data, file.filename or "", organization_id, blur=blur)
    return {"url": url}
