from typing import Optional

from sqlalchemy.orm import Session

from tyjson.models.user import User


class UsersRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, uid: int) -> Optional[User]:
        return self.db.get(User, uid)
