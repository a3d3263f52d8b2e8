from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from battery_rental.db.models import User


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def list_users(self) -> List[User]:
        return list(self.session.execute(select(User).order_by(User.name)).scalars())

    def create_user(self, user: User) -> None:
        self.session.add(user)
        self.session.flush()

    def delete_user(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()
