from sqlalchemy import Column, Integer, String

from tyjson.db.base import Base


class User(Base):
    __tablename__ = "users"

    uid = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(32), unique=True)
    mail = Column(String(200), nullable=True)
    screenName = Column(String(32), nullable=True)
    group = Column(String(16), nullable=False, default="visitor")
    authCode = Column(String(64), nullable=True)
