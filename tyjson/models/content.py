from sqlalchemy import Column, Integer, String, Text

from tyjson.db.base import Base


class Content(Base):
    """Posts, pages and attachments share one table, split by ``type``."""

    __tablename__ = "contents"

    cid = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=True)
    slug = Column(String(200), unique=True, index=True)
    created = Column(Integer, nullable=False, default=0, index=True)
    modified = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    authorId = Column(Integer, nullable=False, default=0)
    template = Column(String(32), nullable=True)
    type = Column(String(16), nullable=False, default="post", index=True)
    status = Column(String(16), nullable=False, default="publish")
    password = Column(String(32), nullable=True)
    commentsNum = Column(Integer, nullable=False, default=0)
    allowComment = Column(String(1), nullable=False, default="1")
    parent = Column(Integer, nullable=False, default=0)
