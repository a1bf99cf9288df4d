from typing import Any

from fastapi import APIRouter

from app.api.deps import CompanyFromQuery, SessionDep
from app.models import WheelReportRow
from app.services.report import ReportAggregator

router_reports = APIRouter(prefix="/reports", tags=["reports"])


@router_reports.get("/", response_model=list[WheelReportRow])
def read_report(session: SessionDep, company: CompanyFromQuery) -> Any:
    """
    Out-of-bounds temperature and pressure counts per wheel of the company.
    """
    return ReportAggregator(session).generate_report(company.id)
