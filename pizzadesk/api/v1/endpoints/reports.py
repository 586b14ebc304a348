"""
Report endpoints (Admin only)
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, Query

from pizzadesk.core.dependencies import StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.order import DailyRevenue, TopProduct
from pizzadesk.services.report_service import TOP_PRODUCTS_LIMIT, ReportService

router = APIRouter(tags=["Reports"])

ReportReader = Annotated[User, Depends(require("reports.read"))]


@router.get("/weekly-revenue", response_model=List[DailyRevenue])
async def weekly_revenue(store: StoreDependency, admin: ReportReader):
    """Seven daily buckets ending today (UTC), cancelled orders excluded"""
    return await ReportService.weekly_revenue(store)


@router.get("/top-products", response_model=List[TopProduct])
async def top_products(
    store: StoreDependency,
    admin: ReportReader,
    limit: int = Query(TOP_PRODUCTS_LIMIT, ge=1, le=50)
):
    return await ReportService.top_products(store, limit=limit)
