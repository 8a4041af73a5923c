from sqlalchemy import Column, Integer, String, Text

from tyjson.db.base import Base


class Option(Base):
    """Site-wide key/value settings owned by the CMS."""

    __tablename__ = "options"

    name = Column(String(32), primary_key=True)
    user = Column(Integer, primary_key=True, default=0)
    value = Column(Text, nullable=True)
