from sqlalchemy import Column, Integer, String, Text

from tyjson.db.base import Base


class Comment(Base):
    __tablename__ = "comments"

    coid = Column(Integer, primary_key=True, autoincrement=True)
    cid = Column(Integer, nullable=False, default=0, index=True)
    created = Column(Integer, nullable=False, default=0, index=True)
    author = Column(String(200), nullable=True)
    authorId = Column(Integer, nullable=False, default=0)
    ownerId = Column(Integer, nullable=False, default=0)
    mail = Column(String(200), nullable=True)
    url = Column(String(255), nullable=True)
    ip = Column(String(64), nullable=True)
    agent = Column(String(511), nullable=True)
    text = Column(Text, nullable=True)
    type = Column(String(16), nullable=False, default="comment")
    status = Column(String(16), nullable=False, default="approved")
    parent = Column(Integer, nullable=False, default=0)
