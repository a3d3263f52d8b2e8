from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from battery_rental.api.dependencies import get_dashboard_service, get_principal
from battery_rental.schemas import DashboardSummaryResponse
from battery_rental.services.dashboard import DashboardService

router = APIRouter(dependencies=[Depends(get_principal)])


@router.get("/dashboard/summary", response_model=DashboardSummaryResponse)
def dashboard_summary(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.summary()
    except Exception as e:
        logger.exception(f"Error fetching dashboard summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard summary")
