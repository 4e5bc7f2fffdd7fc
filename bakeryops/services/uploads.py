# bakeryops/services/uploads.py
from __future__ import annotations

import logging
import secrets
import time
from typing import Dict, Optional

from ..db import Gateway
from ..errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "images"


def storage_path(filename: str) -> str:
    """public/<epoch-ms>-<random>.<ext>, so uploads never collide."""
    ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    return f"public/{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext.lower()}"


async def upload_file(
    gateway: Gateway,
    filename: str,
    content: bytes,
    content_type: Optional[str],
    bucket: Optional[str] = None,
) -> Dict[str, object]:
    if not filename or not content:
        raise ValidationError("No file provided")
    bucket = bucket or DEFAULT_BUCKET
    path = storage_path(filename)
    logger.info("Uploading to bucket: %s path: %s", bucket, path)
    url = await gateway.upload(bucket, path, content, content_type)
    return {"url": url, "path": path, "bucket": bucket, "success": True}
