# bakeryops/routes/uploads.py
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..db import Gateway, get_gateway
from ..services.uploads import upload_file

router = APIRouter(tags=["upload"])


@router.post("/upload")
async def upload_endpoint(
    file: UploadFile = File(...),
    bucket: Optional[str] = Form(None),
    gateway: Gateway = Depends(get_gateway),
):
    content = await file.read()
    return await upload_file(gateway, file.filename or "", content, file.content_type, bucket)
