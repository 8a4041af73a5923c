from sqlalchemy import Column, Integer, String

from tyjson.db.base import Base


class Meta(Base):
    """Categories and tags ("terms")."""

    __tablename__ = "metas"

    mid = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=True)
    slug = Column(String(200), index=True)
    type = Column(String(32), nullable=False)
    description = Column(String(200), nullable=True)
    count = Column(Integer, nullable=False, default=0)
    order = Column(Integer, nullable=False, default=0)
    parent = Column(Integer, nullable=False, default=0)


class Relationship(Base):
    __tablename__ = "relationships"

    cid = Column(Integer, primary_key=True)
    mid = Column(Integer, primary_key=True)
