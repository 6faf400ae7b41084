"""
Health Check Router
Liveness plus a connectivity report for the backing AWS services
"""
import logging
from datetime import datetime, timezone

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.dependencies import get_dynamodb_resource, get_s3_client

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def aws_services_status(
    settings: Settings = Depends(get_settings),
    dynamodb=Depends(get_dynamodb_resource),
    s3=Depends(get_s3_client),
):
    """
    Check that every table and bucket the API uses is reachable.
    """
    tables = {
        "expenses": settings.DYNAMO_EXPENSES_TABLE,
        "categories": settings.DYNAMO_CATEGORIES_TABLE,
        "files": settings.DYNAMO_FILES_TABLE,
    }
    buckets = {
        "files": settings.FILES_BUCKET,
        "reports": settings.REPORTS_BUCKET,
    }

    table_status = {}
    for label, name in tables.items():
        try:
            dynamodb.Table(name).scan(Limit=1)
            table_status[label] = {"name": name, "status": "accessible"}
        except (BotoCoreError, ClientError) as e:
            logger.error(f"DynamoDB check failed for {name}: {e}")
            table_status[label] = {"name": name, "status": "error", "error": str(e)}

    bucket_status = {}
    for label, name in buckets.items():
        try:
            s3.head_bucket(Bucket=name)
            bucket_status[label] = {"name": name, "status": "accessible"}
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 check failed for {name}: {e}")
            bucket_status[label] = {"name": name, "status": "error", "error": str(e)}

    services = {
        "dynamodb": {
            "connected": all(t["status"] == "accessible" for t in table_status.values()),
            "region": settings.AWS_REGION,
            "tables": table_status,
        },
        "s3": {
            "connected": all(b["status"] == "accessible" for b in bucket_status.values()),
            "region": settings.AWS_REGION,
            "buckets": bucket_status,
        },
    }
    all_connected = all(service["connected"] for service in services.values())

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
        "overall_status": "healthy" if all_connected else "degraded",
    }
