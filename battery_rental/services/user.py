from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.core.exceptions import ConflictException, NotFoundException
from battery_rental.core.principal import Principal
from battery_rental.core.utils import uuid4
from battery_rental.db.models import User
from battery_rental.db.repositories.user import UserRepository
from battery_rental.schemas import (
    CurrentUserResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)


class UserService:
    def __init__(self, session: Session, user_repo: UserRepository):
        self.session = session
        self.user_repo = user_repo

    def list_users(self) -> List[UserResponse]:
        return [UserResponse.model_validate(u) for u in self.user_repo.list_users()]

    def current_user(self, principal: Principal) -> CurrentUserResponse:
        user = self.user_repo.get_by_id(principal.id)
        if not user:
            return CurrentUserResponse(id=principal.id, role=principal.role)
        return CurrentUserResponse(
            id=user.id, role=principal.role, name=user.name, email=user.email
        )

    def create_user(self, request: UserCreateRequest) -> UserResponse:
        if self.user_repo.get_by_email(request.email):
            raise ConflictException("User with this email already exists")

        user = User(
            id=uuid4(), email=request.email, name=request.name, role=request.role.value
        )
        try:
            self.user_repo.create_user(user)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"User {user.id} created with role {user.role}")
        return UserResponse.model_validate(user)

    def update_user(self, user_id: str, request: UserUpdateRequest) -> UserResponse:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User")

        if request.email and request.email != user.email:
            if self.user_repo.get_by_email(request.email):
                raise ConflictException("User with this email already exists")

        try:
            if request.email:
                user.email = request.email
            if request.name:
                user.name = request.name
            if request.role is not None:
                user.role = request.role.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return UserResponse.model_validate(user)

    def delete_user(self, user_id: str) -> None:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("User")

        try:
            self.user_repo.delete_user(user)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"User {user_id} deleted")
