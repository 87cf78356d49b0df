from fastapi import APIRouter, Depends, Query, Request

from app.sarisuki.backend.documents import DocumentStore
from app.sarisuki.core.config import settings
from app.sarisuki.core.deps import get_admin_workspace, get_documents
from app.sarisuki.schemas.sales import SalesReportResponse
from app.sarisuki.services.reports import (
    resolve_report_range,
    resolve_timezone,
    validate_date_range,
)
from app.sarisuki.services.workspaces import Workspace

router = APIRouter()


@router.get("/admin/sales", response_model=SalesReportResponse)
def sales_report(
    request: Request,
    from_value: str | None = Query(default=None, alias="from"),
    to_value: str | None = Query(default=None, alias="to"),
    timezone: str | None = Query(default=None),
    workspace: Workspace = Depends(get_admin_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    tz = resolve_timezone(timezone)
    date_range = resolve_report_range(from_value, to_value, tz)
    validate_date_range(date_range, max_days=settings.REPORT_MAX_DATE_RANGE_DAYS)

    report = workspace.report
    report.bind(workspace.store_id, date_range, documents)
    return SalesReportResponse(
        store_id=workspace.store_id,
        date_from=date_range.start_date,
        date_to=date_range.end_date,
        timezone=date_range.timezone_name,
        total_revenue=report.total_revenue,
        total_items=report.total_items,
        sales=report.sales,
        loading=report.loading,
        notice=report.notice.message if report.notice else None,
        trace_id=getattr(request.state, "trace_id", ""),
    )
