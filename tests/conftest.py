from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.dependencies import (
    get_category_store,
    get_expense_store,
    get_file_store,
    get_files_bucket,
    get_reports_bucket,
)
from expense_tracker.main import app
from expense_tracker.models.category import Category
from expense_tracker.models.expense import Expense, utc_now_iso
from expense_tracker.models.file import FileRecord

USER = Identity(user_id="user-1", email="user1@example.com")
OTHER_USER = Identity(user_id="user-2", email="user2@example.com")


def make_expense(amount, category, day, payment_method="cash", user_id=USER.user_id, **extra) -> Expense:
    return Expense(
        user_id=user_id,
        amount=amount,
        category=category,
        date=date.fromisoformat(day),
        payment_method=payment_method,
        **extra,
    )


class FakeExpenseStore:
    def __init__(self) -> None:
        self.items: Dict[str, Expense] = {}

    def put(self, expense: Expense) -> Expense:
        self.items[expense.expense_id] = expense
        return expense

    def get(self, expense_id: str) -> Optional[Expense]:
        return self.items.get(expense_id)

    def update(self, expense_id: str, changes: Dict) -> Optional[Expense]:
        current = self.items.get(expense_id)
        if current is None:
            return None
        updated = Expense.model_validate({**current.to_item(), **changes, "updatedAt": utc_now_iso()})
        self.items[expense_id] = updated
        return updated

    def delete(self, expense_id: str) -> bool:
        return self.items.pop(expense_id, None) is not None

    def query_by_user(self, user_id, start_date=None, end_date=None) -> List[Expense]:
        found = [e for e in self.items.values() if e.user_id == user_id]
        if start_date and end_date:
            found = [e for e in found if start_date <= e.date <= end_date]
        return found


class FakeCategoryStore:
    def __init__(self) -> None:
        self.items: List[Category] = []

    def put(self, category: Category) -> Category:
        self.items.append(category)
        return category

    def list_for_user(self, user_id: str) -> List[Category]:
        return [c for c in self.items if c.user_id == user_id]


class FakeFileStore:
    def __init__(self) -> None:
        self.items: Dict[str, FileRecord] = {}

    def put(self, record: FileRecord) -> FileRecord:
        self.items[record.file_id] = record
        return record

    def get(self, file_id: str) -> Optional[FileRecord]:
        return self.items.get(file_id)

    def list_for_user(self, user_id: str) -> List[FileRecord]:
        return [r for r in self.items.values() if r.user_id == user_id]

    def update(self, file_id: str, changes: Dict) -> Optional[FileRecord]:
        current = self.items.get(file_id)
        if current is None:
            return None
        updated = FileRecord.model_validate({**current.to_item(), **changes, "updatedAt": utc_now_iso()})
        self.items[file_id] = updated
        return updated

    def delete(self, file_id: str) -> bool:
        return self.items.pop(file_id, None) is not None


class FakeObjectStore:
    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        self.objects: Dict[str, Dict] = {}
        self._clock = datetime(2024, 3, 1, tzinfo=timezone.utc)

    def put(self, key, body, content_type, metadata=None) -> None:
        self._clock += timedelta(minutes=1)
        self.objects[key] = {
            "body": body,
            "content_type": content_type,
            "metadata": metadata or {},
            "last_modified": self._clock,
        }

    def get(self, key: str) -> bytes:
        body = self.objects[key]["body"]
        return body.encode() if isinstance(body, str) else body

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)

    def list_objects(self, prefix: str) -> List[Dict]:
        return [
            {"Key": key, "Size": len(obj["body"]), "LastModified": obj["last_modified"]}
            for key, obj in self.objects.items()
            if key.startswith(prefix)
        ]

    def presigned_upload_url(self, key, content_type, expires_in, metadata=None) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}?upload=1&X-Amz-Expires={expires_in}"

    def presigned_download_url(self, key, expires_in) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}?X-Amz-Expires={expires_in}"


@pytest.fixture
def expense_store():
    return FakeExpenseStore()


@pytest.fixture
def category_store():
    return FakeCategoryStore()


@pytest.fixture
def file_store():
    return FakeFileStore()


@pytest.fixture
def files_bucket():
    return FakeObjectStore("files-bucket")


@pytest.fixture
def reports_bucket():
    return FakeObjectStore("reports-bucket")


@pytest.fixture
def current_identity():
    """Mutable holder so a test can act as another user mid-way."""
    return {"identity": USER}


@pytest.fixture
def client(expense_store, category_store, file_store, files_bucket, reports_bucket, current_identity):
    app.dependency_overrides[get_current_identity] = lambda: current_identity["identity"]
    app.dependency_overrides[get_expense_store] = lambda: expense_store
    app.dependency_overrides[get_category_store] = lambda: category_store
    app.dependency_overrides[get_file_store] = lambda: file_store
    app.dependency_overrides[get_files_bucket] = lambda: files_bucket
    app.dependency_overrides[get_reports_bucket] = lambda: reports_bucket
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
