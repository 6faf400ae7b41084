"""
File vault: presigned uploads, metadata records, search, rename/retag,
delete and temporary share links.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.core.errors import not_owner
from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.db.dynamo import FileStore
from expense_tracker.db.s3 import ObjectStore
from expense_tracker.dependencies import get_file_store, get_files_bucket
from expense_tracker.models.file import UNTAGGED, FileRecord, FileRecordCreate, FileUpdate, ShareRequest, UploadUrlRequest

router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_FILE_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
    "application/zip",
    "application/x-zip-compressed",
]


def _owned_file(store: FileStore, file_id: str, user_id: str, action: str) -> FileRecord:
    record = store.get(file_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    if record.user_id != user_id:
        logger.warning(f"User {user_id} tried to {action} file {file_id} owned by someone else")
        raise not_owner("file", action)
    return record


def _with_download_urls(records: List[FileRecord], bucket: ObjectStore, expires_in: int) -> List[Dict]:
    files = []
    for record in records:
        item = record.to_item()
        try:
            item["downloadUrl"] = bucket.presigned_download_url(record.key, expires_in)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating download URL for file {record.file_id}: {e}")
            item["downloadUrl"] = None
            item["error"] = "Failed to generate download URL"
        files.append(item)
    return files


def matches_search(record: FileRecord, search_term: str, tag: str) -> bool:
    """`search_term` is a substring of the name or tag; `tag` must match exactly. Both ignore case."""
    if search_term:
        needle = search_term.lower()
        if needle not in record.file_name.lower() and needle not in (record.tag or "").lower():
            return False
    if tag and (record.tag or "").lower() != tag.lower():
        return False
    return True


@router.post("/get-upload-url")
def get_upload_url(
    request: UploadUrlRequest,
    identity: Identity = Depends(get_current_identity),
    bucket: ObjectStore = Depends(get_files_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    if request.file_size > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds maximum allowed size of {settings.MAX_FILE_SIZE // 1024 // 1024}MB",
        )
    if request.file_type not in ALLOWED_FILE_TYPES:
        raise HTTPException(
            status_code=400,
            detail={"error": "File type not allowed", "allowedTypes": ALLOWED_FILE_TYPES},
        )

    file_id = str(uuid.uuid4())
    key = f"{identity.user_id}/{file_id}/{request.file_name}"
    try:
        upload_url = bucket.presigned_upload_url(
            key,
            request.file_type,
            settings.UPLOAD_URL_EXPIRES,
            metadata={"userId": identity.user_id, "originalFileName": request.file_name},
        )
    except (BotoCoreError, ClientError):
        logger.error("Error generating upload URL", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")

    logger.info(f"Generated upload URL for user {identity.user_id}, file {file_id}")
    return {"uploadUrl": upload_url, "fileId": file_id, "key": key}


@router.post("/files", status_code=status.HTTP_201_CREATED)
def record_metadata(
    request: FileRecordCreate,
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
) -> Dict:
    if not request.key.startswith(f"{identity.user_id}/{request.file_id}/"):
        raise not_owner("file", "record")

    now = datetime.now(timezone.utc).isoformat()
    record = FileRecord(
        file_id=request.file_id,
        user_id=identity.user_id,
        user_email=identity.email,
        file_name=request.file_name,
        file_type=request.file_type,
        file_size=request.file_size,
        key=request.key,
        tag=request.tag or UNTAGGED,
        uploaded_at=now,
        updated_at=now,
    )
    try:
        existing = store.get(record.file_id)
        if existing is not None and existing.user_id != identity.user_id:
            logger.warning(f"User {identity.user_id} tried to overwrite file {record.file_id} owned by someone else")
            raise not_owner("file", "record")
        store.put(record)
    except ClientError:
        logger.error("Error recording file metadata", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record file metadata")

    logger.info(f"Recorded metadata for file {record.file_id} by user {identity.user_id}")
    return {"message": "File metadata recorded successfully", "file": record.to_item()}


@router.get("/files")
def list_files(
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
    bucket: ObjectStore = Depends(get_files_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    try:
        records = store.list_for_user(identity.user_id)
    except ClientError:
        logger.error("Error listing files", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list files")

    files = _with_download_urls(records, bucket, settings.DOWNLOAD_URL_EXPIRES)
    logger.info(f"Listed {len(files)} files for user {identity.user_id}")
    return {"files": files, "count": len(files)}


@router.get("/files/search")
def search_files(
    q: str = Query(""),
    tag: str = Query(""),
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
    bucket: ObjectStore = Depends(get_files_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    try:
        records = store.list_for_user(identity.user_id)
    except ClientError:
        logger.error("Error searching files", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search files")

    found = [r for r in records if matches_search(r, q, tag)]
    files = _with_download_urls(found, bucket, settings.DOWNLOAD_URL_EXPIRES)
    logger.info(f"Search found {len(files)} files for user {identity.user_id}")
    return {"files": files, "count": len(files), "searchTerm": q, "tag": tag}


@router.patch("/files/{file_id}")
def update_file(
    file_id: str,
    request: FileUpdate,
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
) -> Dict:
    """Rename and/or retag a file. The object key is left alone."""
    changes = {}
    if request.new_file_name is not None:
        if not request.new_file_name.strip():
            raise HTTPException(status_code=400, detail="Missing or invalid newFileName")
        changes["fileName"] = request.new_file_name.strip()
    if request.tag is not None:
        if not request.tag.strip():
            raise HTTPException(status_code=400, detail="Missing or invalid tag")
        changes["tag"] = request.tag.strip()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        _owned_file(store, file_id, identity.user_id, "rename")
        updated = store.update(file_id, changes)
    except ClientError:
        logger.error(f"Error updating file {file_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update file")

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    logger.info(f"Updated file {file_id} ({', '.join(changes)}) for user {identity.user_id}")
    return {"message": "File updated successfully", "file": updated.to_item()}


@router.delete("/files/{file_id}")
def delete_file(
    file_id: str,
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
    bucket: ObjectStore = Depends(get_files_bucket),
) -> Dict:
    try:
        record = _owned_file(store, file_id, identity.user_id, "delete")
        bucket.delete(record.key)
        store.delete(file_id)
    except ClientError:
        logger.error(f"Error deleting file {file_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete file")

    logger.info(f"Deleted file {file_id} for user {identity.user_id}")
    return {"message": "File deleted successfully", "fileId": file_id}


@router.post("/files/{file_id}/share")
def share_file(
    file_id: str,
    request: Optional[ShareRequest] = Body(None),
    identity: Identity = Depends(get_current_identity),
    store: FileStore = Depends(get_file_store),
    bucket: ObjectStore = Depends(get_files_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """
    Issue a download link anyone can use until it expires. Defaults to one
    hour; requests longer than seven days are capped.
    """
    expires_in = settings.DOWNLOAD_URL_EXPIRES
    if request is not None and request.expires_in is not None:
        if request.expires_in <= 0:
            raise HTTPException(status_code=400, detail="expiresIn must be a positive number of seconds")
        expires_in = min(request.expires_in, settings.MAX_SHARE_EXPIRES)

    try:
        record = _owned_file(store, file_id, identity.user_id, "share")
        shareable_url = bucket.presigned_download_url(record.key, expires_in)
        store.update(file_id, {"shared": True})
    except (BotoCoreError, ClientError):
        logger.error(f"Error generating shareable link for file {file_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate shareable link")

    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    logger.info(f"Generated shareable link for file {file_id} by user {identity.user_id}")
    return {
        "message": "Shareable link generated successfully",
        "shareableUrl": shareable_url,
        "expiresIn": expires_in,
        "expiresAt": expires_at.isoformat(),
    }
