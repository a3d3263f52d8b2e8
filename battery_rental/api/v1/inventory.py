from typing import List

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from battery_rental.api.dependencies import (
    get_dashboard_service,
    get_inventory_service,
    get_principal,
    require_admin,
)
from battery_rental.core.exceptions import BatteryRentalException, to_http_exception
from battery_rental.schemas import (
    BatteryCreateRequest,
    BatteryDetailResponse,
    BatteryResponse,
    BatteryUpdateRequest,
    InventoryStatsResponse,
)
from battery_rental.services.dashboard import DashboardService
from battery_rental.services.inventory import InventoryService

router = APIRouter(dependencies=[Depends(get_principal)])


@router.get("/inventory", response_model=List[BatteryResponse])
def list_batteries(
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    try:
        return inventory_service.list_batteries()
    except Exception as e:
        logger.exception(f"Error fetching batteries: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch batteries")


@router.get("/inventory/summary/stats", response_model=InventoryStatsResponse)
def inventory_stats(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return dashboard_service.inventory_stats()
    except Exception as e:
        logger.exception(f"Error fetching inventory summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch inventory summary")


@router.get("/inventory/{battery_id}", response_model=BatteryDetailResponse)
def get_battery(
    battery_id: str,
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    try:
        return inventory_service.get_battery(battery_id)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error fetching battery {battery_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch battery")


@router.post("/inventory", response_model=BatteryResponse, status_code=201)
def create_battery(
    request: BatteryCreateRequest,
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    try:
        return inventory_service.create_battery(request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error creating battery: {e}")
        raise HTTPException(status_code=500, detail="Failed to create battery")


@router.put("/inventory/{battery_id}", response_model=BatteryResponse)
def update_battery(
    battery_id: str,
    request: BatteryUpdateRequest,
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    try:
        return inventory_service.update_battery(battery_id, request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error updating battery {battery_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update battery")


@router.delete("/inventory/{battery_id}", dependencies=[Depends(require_admin)])
def delete_battery(
    battery_id: str,
    inventory_service: InventoryService = Depends(get_inventory_service),
):
    try:
        inventory_service.delete_battery(battery_id)
        return {"message": "Battery deleted successfully"}
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error deleting battery {battery_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete battery")
