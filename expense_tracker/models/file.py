from typing import Optional

from pydantic import Field

from expense_tracker.models.expense import CamelModel, utc_now_iso

UNTAGGED = "untagged"


class UploadUrlRequest(CamelModel):
    file_name: str = Field(min_length=1)
    file_type: str = Field(min_length=1)
    file_size: int = Field(gt=0)


class FileRecordCreate(CamelModel):
    file_id: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    file_type: str = Field(min_length=1)
    file_size: int = Field(gt=0)
    key: str = Field(min_length=1)
    tag: Optional[str] = None


class FileRecord(CamelModel):
    file_id: str
    user_id: str
    user_email: str = "unknown"
    file_name: str
    file_type: str
    file_size: int
    key: str
    tag: str = UNTAGGED
    uploaded_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    shared: bool = False


class FileUpdate(CamelModel):
    new_file_name: Optional[str] = None
    tag: Optional[str] = None


class ShareRequest(CamelModel):
    expires_in: Optional[int] = None
