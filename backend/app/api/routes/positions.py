import uuid
from typing import Any, Optional

from fastapi import APIRouter, Query

from app.api.deps import CompanyFromQuery, SessionDep
from app.models import CurrentPositionRow, Point
from app.services.positions import PositionTracker

router_positions = APIRouter(prefix="/positions", tags=["positions"])


@router_positions.get("/current", response_model=list[CurrentPositionRow])
def read_current_positions(session: SessionDep, company: CompanyFromQuery) -> Any:
    """
    Current position of every tracked car of the company.
    """
    return PositionTracker(session).get_current_positions(company.id)


@router_positions.get("/area", response_model=list[CurrentPositionRow])
def read_positions_in_area(
    session: SessionDep,
    lat_a: float = Query(ge=-90, le=90),
    lng_a: float = Query(ge=-180, le=180),
    lat_b: float = Query(ge=-90, le=90),
    lng_b: float = Query(ge=-180, le=180),
    company_id: Optional[uuid.UUID] = None,
) -> Any:
    """
    Cars whose current position lies in the rectangle spanned by two corners.

    The corners may be given in any order.
    """
    return PositionTracker(session).get_positions_in_box(
        Point(latitude=lat_a, longitude=lng_a),
        Point(latitude=lat_b, longitude=lng_b),
        company_id=company_id,
    )
