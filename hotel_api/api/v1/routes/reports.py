from datetime import date, datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hotel_api.db.session import get_db
from hotel_api.api.deps import require_admin
from hotel_api.core.errors import InvalidRange
from hotel_api.models.user import User
from hotel_api.services.report_service import monthly_income, sales_report

router = APIRouter(tags=["reports"])

@router.get("/reports/monthly-income")
def get_monthly_income(year: int | None = None, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    return monthly_income(db, year or datetime.now(timezone.utc).year)

@router.get("/reports/sales")
def get_sales_report(startDate: date, endDate: date, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    if endDate < startDate:
        raise InvalidRange("endDate must not be before startDate")
    return sales_report(db, startDate, endDate)
