from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from battery_rental.api.dependencies import (
    get_dashboard_service,
    get_payment_service,
    get_principal,
)
from battery_rental.core.exceptions import BatteryRentalException, to_http_exception
from battery_rental.schemas import (
    DailyEarningsResponse,
    FinancialSummaryResponse,
    MonthlyEarningsResponse,
    PaymentDetailResponse,
    PaymentResponse,
    RecordPaymentRequest,
)
from battery_rental.services.dashboard import DashboardService
from battery_rental.services.payment import PaymentService

router = APIRouter(dependencies=[Depends(get_principal)])


@router.get("/payments", response_model=List[PaymentDetailResponse])
def list_payments(payment_service: PaymentService = Depends(get_payment_service)):
    try:
        return payment_service.list_payments()
    except Exception as e:
        logger.exception(f"Error fetching payments: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch payments")


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def record_payment(
    request: RecordPaymentRequest,
    payment_service: PaymentService = Depends(get_payment_service),
):
    try:
        return payment_service.record_payment(request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error creating payment: {e}")
        raise HTTPException(status_code=500, detail="Failed to create payment")


@router.get("/payments/filter/by-date", response_model=List[PaymentDetailResponse])
def list_payments_by_date(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    payment_service: PaymentService = Depends(get_payment_service),
):
    try:
        return payment_service.list_payments_by_date(start_date, end_date)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching payments by date: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch payments by date")


@router.get("/payments/summary/daily", response_model=DailyEarningsResponse)
def daily_earnings(
    day: Optional[date] = Query(None),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.daily_earnings(day)
    except Exception as e:
        logger.exception(f"Error fetching daily earnings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch daily earnings")


@router.get("/payments/summary/monthly", response_model=MonthlyEarningsResponse)
def monthly_earnings(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.monthly_earnings(year, month)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching monthly earnings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch monthly earnings")


@router.get("/payments/summary/financial", response_model=FinancialSummaryResponse)
def financial_summary(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.financial_summary()
    except Exception as e:
        logger.exception(f"Error fetching financial summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch financial summary")


@router.get("/payments/{payment_id}", response_model=PaymentDetailResponse)
def get_payment(
    payment_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
):
    try:
        return payment_service.get_payment(payment_id)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching payment {payment_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch payment")
