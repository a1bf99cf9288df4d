import uuid

from sqlmodel import Session

from app import crud
from app.models.telemetry_models import WheelReportRow


class ReportAggregator:
    def __init__(self, session: Session):
        self.session = session

    def generate_report(self, company_id: uuid.UUID) -> list[WheelReportRow]:
        """
        Out-of-bounds counts for every wheel of the company.

        A sample counts when it is strictly below the wheel's minimum or
        strictly above its maximum; readings equal to a bound are in range.
        Wheels without samples appear with zero counts. Rows are ordered
        by state number, then wheel position.
        """
        return crud.get_report_data(session=self.session, company_id=company_id)
