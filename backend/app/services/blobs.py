"""Storage for scanned proof documents uploaded ahead of form submission."""

import hashlib
import logging
import uuid
from pathlib import Path

from sqlmodel import Session

from app.core.config import settings
from app.core.security import create_signed_id, resolve_signed_id
from app.models import ProofBlob

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
}


class BlobError(ValueError):
    pass


def check_content_type(content_type: str | None) -> None:
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise BlobError("Unsupported file type. Allowed: PDF, JPEG, PNG, WEBP")


def check_size(byte_size: int) -> None:
    if byte_size > settings.MAX_UPLOAD_BYTES:
        raise BlobError("Uploaded file is too large")


def store_blob(
    *, session: Session, filename: str | None, content_type: str | None, content: bytes
) -> ProofBlob:
    check_content_type(content_type)
    if not content:
        raise BlobError("Uploaded file is empty")
    check_size(len(content))

    safe_name = Path(filename or "scanned-proof").name
    storage_dir = Path(settings.UPLOAD_DIR)
    storage_dir.mkdir(parents=True, exist_ok=True)
    storage_path = storage_dir / f"{uuid.uuid4()}_{safe_name}"
    storage_path.write_bytes(content)

    blob = ProofBlob(
        filename=safe_name,
        content_type=content_type,
        byte_size=len(content),
        checksum=hashlib.sha256(content).hexdigest(),
        storage_path=str(storage_path),
    )
    session.add(blob)
    session.commit()
    session.refresh(blob)
    logger.info("Stored proof blob %s (%s bytes)", blob.id, blob.byte_size)
    return blob


def signed_id_for(blob: ProofBlob) -> str:
    return create_signed_id(blob.id)


def find_blob(*, session: Session, signed_id: str | None) -> ProofBlob | None:
    if not signed_id:
        return None
    blob_id = resolve_signed_id(signed_id)
    if blob_id is None:
        return None
    try:
        return session.get(ProofBlob, uuid.UUID(blob_id))
    except ValueError:
        return None
