import logging
import uuid
from typing import Dict

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.db.dynamo import ExpenseStore
from expense_tracker.db.s3 import ObjectStore
from expense_tracker.dependencies import get_expense_store, get_reports_bucket
from expense_tracker.models.expense import utc_now_iso
from expense_tracker.models.report import ReportRequest
from expense_tracker.utils.analyzer import total_amount
from expense_tracker.utils.report_renderer import render_report

router = APIRouter()
logger = logging.getLogger(__name__)


def report_prefix(user_id: str) -> str:
    return f"reports/{user_id}/"


@router.post("/generate")
def generate_report(
    request: ReportRequest,
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
    bucket: ObjectStore = Depends(get_reports_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """
    Render the user's expenses for the range, upload the file to the reports
    bucket and return a temporary download link.
    """
    if request.start_date > request.end_date:
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")

    start, end = request.start_date.isoformat(), request.end_date.isoformat()
    generated_at = utc_now_iso()
    report_id = str(uuid.uuid4())
    file_name = f"expense-report-{start}-to-{end}-{report_id}.{request.format}"
    key = report_prefix(identity.user_id) + file_name

    try:
        expenses = store.query_by_user(identity.user_id, request.start_date, request.end_date)
        body, content_type = render_report(request.format, expenses, request.start_date, request.end_date, generated_at)
        bucket.put(
            key,
            body,
            content_type,
            metadata={"userId": identity.user_id, "startDate": start, "endDate": end, "generatedAt": generated_at},
        )
        download_url = bucket.presigned_download_url(key, settings.DOWNLOAD_URL_EXPIRES)
    except ClientError:
        logger.error(f"Error generating report for user {identity.user_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate report")

    logger.info(f"Generated report {report_id} for user {identity.user_id} ({len(expenses)} expenses)")
    return {
        "message": "Report generated successfully",
        "reportId": report_id,
        "fileName": file_name,
        "downloadUrl": download_url,
        "expiresIn": settings.DOWNLOAD_URL_EXPIRES,
        "format": request.format,
        "summary": {
            "totalExpenses": len(expenses),
            "totalAmount": total_amount(expenses),
            "dateRange": {"startDate": start, "endDate": end},
        },
    }


@router.get("")
def list_reports(
    identity: Identity = Depends(get_current_identity),
    bucket: ObjectStore = Depends(get_reports_bucket),
    settings: Settings = Depends(get_settings),
) -> Dict:
    try:
        objects = bucket.list_objects(report_prefix(identity.user_id))
        reports = [
            {
                "fileName": obj["Key"].split("/")[-1],
                "size": obj.get("Size", 0),
                "lastModified": obj["LastModified"].isoformat(),
                "downloadUrl": bucket.presigned_download_url(obj["Key"], settings.DOWNLOAD_URL_EXPIRES),
            }
            for obj in sorted(objects, key=lambda o: o["LastModified"], reverse=True)
        ]
    except ClientError:
        logger.error(f"Error listing reports for user {identity.user_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get reports")

    logger.info(f"Retrieved {len(reports)} reports for user {identity.user_id}")
    return {"reports": reports, "count": len(reports)}
