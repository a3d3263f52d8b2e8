from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from battery_rental.api.dependencies import get_principal, get_rental_service
from battery_rental.core.exceptions import BatteryRentalException, to_http_exception
from battery_rental.schemas import (
    CreateRentalRequest,
    RentalDetailResponse,
    RentalPaymentStatusRequest,
    ReturnBatteryRequest,
)
from battery_rental.services.rental import RentalService

router = APIRouter(dependencies=[Depends(get_principal)])


@router.get("/rentals", response_model=List[RentalDetailResponse])
def list_rentals(rental_service: RentalService = Depends(get_rental_service)):
    try:
        return rental_service.list_rentals()
    except Exception as e:
        logger.exception(f"Error fetching rentals: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch rentals")


@router.get("/rentals/filter/active", response_model=List[RentalDetailResponse])
def list_active_rentals(rental_service: RentalService = Depends(get_rental_service)):
    try:
        return rental_service.list_active_rentals()
    except Exception as e:
        logger.exception(f"Error fetching active rentals: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch active rentals")


@router.get("/rentals/filter/by-date", response_model=List[RentalDetailResponse])
def list_rentals_by_date(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.list_rentals_by_date(start_date, end_date)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching rentals by date: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch rentals by date")


@router.get("/rentals/{rental_id}", response_model=RentalDetailResponse)
def get_rental(
    rental_id: str,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.get_rental(rental_id)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching rental {rental_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch rental")


@router.post("/rentals", response_model=RentalDetailResponse, status_code=201)
def create_rental(
    request: CreateRentalRequest,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.create_rental(request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error creating rental: {e}")
        raise HTTPException(status_code=500, detail="Failed to create rental")


@router.put("/rentals/{rental_id}/return", response_model=RentalDetailResponse)
def return_battery(
    rental_id: str,
    request: ReturnBatteryRequest,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.return_battery(rental_id, request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error returning battery for rental {rental_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to return battery")


@router.put("/rentals/{rental_id}/payment", response_model=RentalDetailResponse)
def set_payment_status(
    rental_id: str,
    request: RentalPaymentStatusRequest,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.set_payment_status(rental_id, request.is_paid)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error updating payment status of rental {rental_id}: {e}")
        raise HTTPException(
            status_code=500, detail="Failed to update rental payment status"
        )
