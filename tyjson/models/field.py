from sqlalchemy import Column, Float, Integer, String, Text

from tyjson.db.base import Base


class Field(Base):
    """Custom per-post field. ``type`` names the populated ``*_value`` column."""

    __tablename__ = "fields"

    cid = Column(Integer, primary_key=True)
    name = Column(String(200), primary_key=True)
    type = Column(String(8), nullable=False, default="str")
    str_value = Column(Text, nullable=True)
    int_value = Column(Integer, nullable=False, default=0)
    float_value = Column(Float, nullable=False, default=0)
