from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile

from app.api.deps import AdminUser, SessionDep
from app.models import DirectUploadPublic
from app.services.blobs import (
    BlobError,
    check_content_type,
    check_size,
    signed_id_for,
    store_blob,
)

router = APIRouter(prefix="/uploads", tags=["uploads"])

CHUNK_SIZE = 1024 * 1024


async def read_upload(file: UploadFile) -> bytes:
    """Read the upload in chunks, stopping as soon as it passes the size limit."""
    chunks: list[bytes] = []
    received = 0
    while chunk := await file.read(CHUNK_SIZE):
        received += len(chunk)
        check_size(received)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/direct", response_model=DirectUploadPublic)
async def direct_upload(
    *,
    session: SessionDep,
    current_user: AdminUser,
    file: UploadFile = File(...),
) -> Any:
    try:
        check_content_type(file.content_type)
        content = await read_upload(file)
        blob = store_blob(
            session=session,
            filename=file.filename,
            content_type=file.content_type,
            content=content,
        )
    except BlobError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return DirectUploadPublic(
        signed_id=signed_id_for(blob),
        filename=blob.filename,
        content_type=blob.content_type,
        byte_size=blob.byte_size,
    )
