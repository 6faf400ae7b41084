"""
Wiring between routers and their collaborators.

boto3 handles are built once per process and handed to routers through
FastAPI dependencies, so tests can swap any of them via
`app.dependency_overrides`.
"""
from functools import lru_cache

import boto3
from botocore.config import Config
from fastapi import Depends

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.db.dynamo import CategoryStore, ExpenseStore, FileStore
from expense_tracker.db.s3 import ObjectStore


@lru_cache
def get_dynamodb_resource():
    settings = get_settings()
    return boto3.resource("dynamodb", region_name=settings.AWS_REGION, endpoint_url=settings.DYNAMO_ENDPOINT_URL)


@lru_cache
def get_s3_client():
    settings = get_settings()
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        config=Config(signature_version="s3v4"),
    )


def get_expense_store(settings: Settings = Depends(get_settings)) -> ExpenseStore:
    table = get_dynamodb_resource().Table(settings.DYNAMO_EXPENSES_TABLE)
    return ExpenseStore(table, date_index=settings.EXPENSES_DATE_INDEX)


def get_category_store(settings: Settings = Depends(get_settings)) -> CategoryStore:
    table = get_dynamodb_resource().Table(settings.DYNAMO_CATEGORIES_TABLE)
    return CategoryStore(table, user_index=settings.USER_ID_INDEX)


def get_file_store(settings: Settings = Depends(get_settings)) -> FileStore:
    table = get_dynamodb_resource().Table(settings.DYNAMO_FILES_TABLE)
    return FileStore(table, user_index=settings.USER_ID_INDEX)


def get_files_bucket(settings: Settings = Depends(get_settings)) -> ObjectStore:
    return ObjectStore(get_s3_client(), settings.FILES_BUCKET)


def get_reports_bucket(settings: Settings = Depends(get_settings)) -> ObjectStore:
    return ObjectStore(get_s3_client(), settings.REPORTS_BUCKET)
