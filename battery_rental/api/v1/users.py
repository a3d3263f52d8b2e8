from typing import List

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from battery_rental.api.dependencies import (
    get_principal,
    get_user_service,
    require_admin,
)
from battery_rental.core.exceptions import BatteryRentalException, to_http_exception
from battery_rental.core.principal import Principal
from battery_rental.schemas import (
    CurrentUserResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from battery_rental.services.user import UserService

router = APIRouter()


@router.get(
    "/users",
    response_model=List[UserResponse],
    dependencies=[Depends(require_admin)],
)
def list_users(user_service: UserService = Depends(get_user_service)):
    try:
        return user_service.list_users()
    except Exception as e:
        logger.exception(f"Error fetching users: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch users")


@router.get("/users/me", response_model=CurrentUserResponse)
def current_user(
    principal: Principal = Depends(get_principal),
    user_service: UserService = Depends(get_user_service),
):
    try:
        return user_service.current_user(principal)
    except Exception as e:
        logger.exception(f"Error fetching current user: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch current user")


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_user(
    request: UserCreateRequest,
    user_service: UserService = Depends(get_user_service),
):
    try:
        return user_service.create_user(request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error creating user: {e}")
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(require_admin)],
)
def update_user(
    user_id: str,
    request: UserUpdateRequest,
    user_service: UserService = Depends(get_user_service),
):
    try:
        return user_service.update_user(user_id, request)
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error updating user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update user")


@router.delete("/users/{user_id}", dependencies=[Depends(require_admin)])
def delete_user(
    user_id: str,
    user_service: UserService = Depends(get_user_service),
):
    try:
        user_service.delete_user(user_id)
        return {"message": "User deleted successfully"}
    except BatteryRentalException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Error deleting user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete user")
