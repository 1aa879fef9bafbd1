from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import Optional
from cafe_pos.api.deps import get_connection_name
from cafe_pos.core.config import LOGS_PAGE_LIMIT
from cafe_pos.schemas.report import LogEntryResponse
from cafe_pos.schemas.response import SuccessResponse
from cafe_pos.services import audit_service, report_service

logs_router = APIRouter()
reports_router = APIRouter()


@logs_router.get("", response_model=SuccessResponse)
async def list_logs_endpoint(
    limit: int = Query(LOGS_PAGE_LIMIT, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    connection_name: str = Depends(get_connection_name),
):
    entries = await audit_service.list_logs(limit, offset, connection_name=connection_name)
    data = [
        LogEntryResponse(
            id=e.id,
            user_id=e.user_id,
            user_name=e.user.name if e.user else None,
            action=e.action,
            module=e.module,
            details=e.details,
            created_at=str(e.created_at),
        ).model_dump()
        for e in entries
    ]
    return SuccessResponse(data=data)


@reports_router.get("/daily", response_model=SuccessResponse)
async def daily_report_endpoint(day: Optional[date] = Query(None, alias="date"), connection_name: str = Depends(get_connection_name)):
    """Sales summary of one day (today when no date is given)."""
    report = await report_service.daily_report(day or date.today(), connection_name=connection_name)
    return SuccessResponse(data=report.model_dump())
