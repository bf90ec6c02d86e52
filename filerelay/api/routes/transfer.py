"""
Upload and download routes.

Handlers are plain ``def`` so FastAPI runs each request in its worker
thread pool. Store locks are held only for the metadata step; file
transfer happens outside them.
"""

from __future__ import annotations

import logging
import os

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import FileResponse, PlainTextResponse

from filerelay.api.admission import admit, client_identity
from filerelay.errors import CodeSpaceExhausted, InvalidCode, PayloadTooLarge, StorageFailure

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transfer"])


def _upload_size(upload: UploadFile) -> int:
    """Size of the spooled upload, measured if the client sent none."""
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


@router.post("/upload", response_class=PlainTextResponse)
def upload(request: Request, file: UploadFile = File(..., description="File to share")) -> str:
    """Store a file and return its access code as plain text."""
    admit(request)

    store = request.app.state.resource_store
    file_store = request.app.state.file_store
    size = _upload_size(file)
    try:
        entry = store.create(size)
    except PayloadTooLarge as exc:
        logger.info("Rejected upload from %s: %s", client_identity(request), exc)
        raise HTTPException(status_code=413, detail="File too large") from exc
    except CodeSpaceExhausted as exc:
        logger.error("Cannot accept upload: %s", exc)
        raise HTTPException(status_code=503, detail="No codes available") from exc

    try:
        file.file.seek(0)
        file_store.save(entry.code, file.filename, file.file)
    except StorageFailure as exc:
        store.discard(entry.code)
        logger.error("Upload for code %s failed: %s", entry.code, exc)
        raise HTTPException(status_code=500, detail="Failed to save file") from exc

    logger.info("Stored upload %s (%d bytes) from %s", entry.code, size, client_identity(request))
    return entry.code


@router.get("/download")
def download(
    request: Request,
    code: str = Query(..., max_length=32, description="Access code"),
) -> FileResponse:
    """
    Stream the file for ``code``.

    One download is spent before streaming starts and is not refunded if
    the client disconnects mid-transfer.
    """
    admit(request)

    store = request.app.state.resource_store
    file_store = request.app.state.file_store

    try:
        entry = store.consume(code)
    except InvalidCode as exc:
        logger.info("Rejected download from %s: invalid code", client_identity(request))
        raise HTTPException(status_code=400, detail="Invalid code") from exc

    try:
        path = file_store.locate(entry.code)
    except StorageFailure as exc:
        logger.error("Download for code %s failed: %s", entry.code, exc)
        raise HTTPException(status_code=500, detail="Failed to open file") from exc

    logger.info("Serving %s (%d downloads left)", entry.code, entry.remaining_downloads)
    return FileResponse(path, media_type="application/octet-stream", filename=path.name)
