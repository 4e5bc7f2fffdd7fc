# bakeryops/db/firestore_gateway.py
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

import firebase_admin
from fastapi.concurrency import run_in_threadpool
from firebase_admin import credentials, firestore, firestore_async, storage
from google.api_core import exceptions as gexc

from ..errors import NotFoundError, PersistenceError
from ..settings import settings
from . import Gateway, _stamp_new

logger = logging.getLogger(__name__)


def _ensure_app() -> None:
    """
    Initialize the Firebase app exactly once.

    Uses GOOGLE_APPLICATION_CREDENTIALS if present, or ADC otherwise.
    """
    if firebase_admin._apps:
        return
    options: Dict[str, Any] = {"projectId": settings.firebase_project_id}
    if settings.storage_bucket:
        options["storageBucket"] = settings.storage_bucket
    sa_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    try:
        if sa_path and os.path.isfile(sa_path):
            firebase_admin.initialize_app(credentials.Certificate(sa_path), options)
        else:
            firebase_admin.initialize_app(options=options)
    except ValueError:
        # If another request initialized between our check and this call,
        # just ignore the "app already exists" error and continue.
        pass


@lru_cache
def ensure_firestore():
    """Return the async Firestore client, initializing Firebase on first use."""
    _ensure_app()
    return firestore_async.client()


def _snap_to_dict(snap) -> Dict[str, Any]:
    data = snap.to_dict() or {}
    data["id"] = snap.id
    return data


class FirestoreGateway(Gateway):
    """Gateway over Firestore collections (one per table) and Cloud Storage."""

    async def list(self, table, filters=None, order_by=None, descending=False):
        db = ensure_firestore()
        q = db.collection(table)
        for field, value in (filters or {}).items():
            q = q.where(field, "==", value)
        # equality filter + order_by needs a composite index; sort client-side instead
        if order_by and not filters:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        try:
            out: List[Dict[str, Any]] = [_snap_to_dict(s) async for s in q.stream()]
        except gexc.GoogleAPIError as e:
            logger.error("Error listing %s: %s", table, e, exc_info=True)
            raise PersistenceError(f"Failed to fetch {table}: {e}") from e
        if order_by and filters:
            present = [r for r in out if r.get(order_by) is not None]
            missing = [r for r in out if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            out = present + missing
        return out

    async def get(self, table, doc_id):
        if not doc_id:
            return None
        db = ensure_firestore()
        try:
            snap = await db.collection(table).document(doc_id).get()
        except gexc.GoogleAPIError as e:
            logger.error("Error fetching %s/%s: %s", table, doc_id, e, exc_info=True)
            raise PersistenceError(f"Failed to fetch {table}: {e}") from e
        if not snap.exists:
            return None
        return _snap_to_dict(snap)

    async def insert(self, table, data):
        db = ensure_firestore()
        row = _stamp_new(data)
        body = {k: v for k, v in row.items() if k != "id"}
        try:
            await db.collection(table).document(row["id"]).set(body)
        except gexc.GoogleAPIError as e:
            logger.error("Error creating %s: %s", table, e, exc_info=True)
            raise PersistenceError(f"Failed to create {table}: {e}") from e
        return row

    async def update(self, table, doc_id, data):
        db = ensure_firestore()
        ref = db.collection(table).document(doc_id)
        body = {k: v for k, v in dict(data).items() if k != "id"}
        try:
            await ref.update(body)
            snap = await ref.get()
        except gexc.NotFound as e:
            raise NotFoundError(table, doc_id) from e
        except gexc.GoogleAPIError as e:
            logger.error("Error updating %s/%s: %s", table, doc_id, e, exc_info=True)
            raise PersistenceError(f"Failed to update {table}: {e}") from e
        return _snap_to_dict(snap)

    async def delete(self, table, doc_id):
        db = ensure_firestore()
        try:
            await db.collection(table).document(doc_id).delete()
        except gexc.GoogleAPIError as e:
            logger.error("Error deleting %s/%s: %s", table, doc_id, e, exc_info=True)
            raise PersistenceError(f"Failed to delete {table}: {e}") from e

    async def upload(self, bucket, path, content, content_type):
        # one Cloud Storage bucket per project; logical buckets become prefixes
        _ensure_app()

        def _put() -> str:
            blob = storage.bucket().blob(f"{bucket}/{path}")
            blob.cache_control = "public, max-age=3600"
            blob.upload_from_string(content, content_type=content_type)
            blob.make_public()
            return blob.public_url

        try:
            return await run_in_threadpool(_put)
        except gexc.GoogleAPIError as e:
            logger.error("Storage upload error: %s", e, exc_info=True)
            raise PersistenceError(f"Storage upload failed: {e}") from e
