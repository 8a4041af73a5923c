from sqlalchemy import Column, String, Text

from tyjson.db.base import Base


class ThemeSetting(Base):
    """Theme options edited through the admin UI, keyed ``<theme>_<name>``."""

    __tablename__ = "ttdf"

    name = Column(String(255), primary_key=True)
    value = Column(Text, nullable=True)
