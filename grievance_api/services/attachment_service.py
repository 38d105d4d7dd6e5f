"""Attachment uploads: validation and local storage."""

import logging
import os
import uuid
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.orm import Session

from grievance_api.core.access import Capabilities, check_comment
from grievance_api.core.config import settings
from grievance_api.core.errors import InvalidAttachment
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.models import Attachment, Grievance

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "pdf", "doc", "docx"}
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def validate_file(filename: str, content_type: str, file_size: int) -> None:
    """Raise InvalidAttachment unless the file passes the allowlists and size cap."""
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_MIME_TYPES:
        raise InvalidAttachment()
    if file_size > settings.MAX_UPLOAD_BYTES:
        max_mb = settings.MAX_UPLOAD_BYTES / 1_000_000
        raise InvalidAttachment(f"File size exceeds {max_mb:.0f} MB limit")


def validate_batch(count: int) -> None:
    if count == 0:
        raise InvalidAttachment("No files uploaded")
    if count > settings.MAX_ATTACHMENTS_PER_REQUEST:
        raise InvalidAttachment(
            f"You can upload at most {settings.MAX_ATTACHMENTS_PER_REQUEST} files at a time"
        )


def store_file(storage_key: str, file: BinaryIO) -> str:
    """Write the file under UPLOAD_DIR. Returns the stored path."""
    path = os.path.join(settings.UPLOAD_DIR, storage_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    file.seek(0)
    with open(path, "wb") as f:
        for chunk in iter(lambda: file.read(8192), b""):
            f.write(chunk)
    return path


def _file_size(file: BinaryIO) -> int:
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)
    return size


def add_attachments(
    db: Session,
    caps: Capabilities,
    grievance: Grievance,
    files: list[tuple[str, str, BinaryIO]],
    update_id: int | None = None,
) -> list[Attachment]:
    """
    Store uploaded files for a grievance.

    files is a list of (original filename, content type, file object). Every
    file is validated before anything is written.
    """
    check_comment(caps, grievance)
    validate_batch(len(files))

    sized = []
    for filename, content_type, fileobj in files:
        size = _file_size(fileobj)
        validate_file(filename, content_type, size)
        sized.append((filename, content_type, fileobj, size))

    written: list[str] = []
    try:
        with UnitOfWork(db):
            attachments = []
            for filename, content_type, fileobj, size in sized:
                storage_key = f"{grievance.ticket_id}/{uuid.uuid4().hex}.{_extension(filename)}"
                path = store_file(storage_key, fileobj)
                written.append(path)
                attachment = Attachment(
                    grievance_id=grievance.id,
                    update_id=update_id,
                    uploaded_by_id=caps.user_id,
                    filename=os.path.basename(filename),
                    storage_path=path,
                    content_type=content_type,
                    file_size=size,
                )
                db.add(attachment)
                attachments.append(attachment)
            db.flush()
    except Exception:
        for path in written:
            _remove_quietly(path)
        raise

    logger.info("Stored %d attachment(s) on %s", len(attachments), grievance.ticket_id)
    return attachments


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        logger.warning("Could not remove orphaned upload %s", path)


def get_attachment(db: Session, attachment_id: UUID) -> Attachment | None:
    return db.get(Attachment, attachment_id)
