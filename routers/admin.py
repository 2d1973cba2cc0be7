from fastapi import APIRouter, Depends
from pymongo.database import Database

from dashboard import ReportingAggregator
from database import get_db
from deps import admin_only, get_reporting
from errors import envelope
from seed import seed_demo

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(admin_only)])


@router.get("/get-dashboard-analytics")
def dashboard_analytics(reporting: ReportingAggregator = Depends(get_reporting)):
    return envelope(reporting.analytics())


@router.post("/seed")
def seed(db: Database = Depends(get_db)):
    return envelope(seed_demo(db))
