from typing import List

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from battery_rental.api.dependencies import (
    get_customer_service,
    get_dashboard_service,
    get_principal,
    require_admin,
)
from battery_rental.core.exceptions import BatteryRentalException, to_http_exception
from battery_rental.schemas import (
    CustomerCreateRequest,
    CustomerDueResponse,
    CustomerProfileResponse,
    CustomerRentalCountResponse,
    CustomerResponse,
    CustomerUpdateRequest,
)
from battery_rental.services.customer import CustomerService
from battery_rental.services.dashboard import DashboardService

router = APIRouter(dependencies=[Depends(get_principal)])


@router.get("/customers", response_model=List[CustomerResponse])
def list_customers(
    customer_service: CustomerService = Depends(get_customer_service),
):
    try:
        return customer_service.list_customers()
    except Exception as e:
        logger.exception(f"Error fetching customers: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch customers")


@router.get("/customers/filter/with-dues", response_model=List[CustomerDueResponse])
def customers_with_dues(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.customers_with_dues()
    except Exception as e:
        logger.exception(f"Error fetching customers with dues: {e}")
        raise HTTPException(
            status_code=500, detail="Failed to fetch customers with dues"
        )


@router.get(
    "/customers/top/by-rentals", response_model=List[CustomerRentalCountResponse]
)
def top_customers(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.top_renters()
    except Exception as e:
        logger.exception(f"Error fetching top customers: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch top customers")


@router.get("/customers/{customer_id}", response_model=CustomerProfileResponse)
def get_customer(
    customer_id: str,
    customer_service: CustomerService = Depends(get_customer_service),
):
    try:
        return customer_service.get_profile(customer_id)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching customer {customer_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch customer")


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(
    request: CustomerCreateRequest,
    customer_service: CustomerService = Depends(get_customer_service),
):
    try:
        return customer_service.create_customer(request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error creating customer: {e}")
        raise HTTPException(status_code=500, detail="Failed to create customer")


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: str,
    request: CustomerUpdateRequest,
    customer_service: CustomerService = Depends(get_customer_service),
):
    try:
        return customer_service.update_customer(customer_id, request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error updating customer {customer_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update customer")


@router.delete("/customers/{customer_id}", dependencies=[Depends(require_admin)])
def delete_customer(
    customer_id: str,
    customer_service: CustomerService = Depends(get_customer_service),
):
    try:
        customer_service.delete_customer(customer_id)
        return {"message": "Customer deleted successfully"}
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error deleting customer {customer_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete customer")
