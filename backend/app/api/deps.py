from collections.abc import Generator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Query
from sqlmodel import Session

from app.core.config import settings
from app.core.db import engine
from app.models import Company
from app.services.fleet import FleetRegistry


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def get_company_from_query(session: SessionDep, company_id: UUID) -> Company:
    """
    Resolve the ``company_id`` query parameter to a company.

    Unknown ids surface as NotFoundError and are mapped to 404 by the
    application's error handler.
    """
    return FleetRegistry(session).get_company(company_id)


CompanyFromQuery = Annotated[Company, Depends(get_company_from_query)]

SkipDep = Annotated[int, Query(ge=0)]
LimitDep = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_LIMIT)]
