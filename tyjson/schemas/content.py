from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TermOut(BaseModel):
    """Category or tag. Extra store columns pass through untouched."""

    model_config = ConfigDict(extra="allow")

    mid: int
    name: Optional[str] = None
    slug: Optional[str] = None
    type: str
    description: str = ""
    count: int = 0


class PostOut(BaseModel):
    cid: int
    title: str = ""
    slug: str = ""
    type: str = "post"
    created: str
    modified: str
    commentsNum: int = 0
    authorId: int = 0
    status: str = "publish"
    contentType: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    content: str = ""
    excerpt: str = ""
    categories: Optional[List[TermOut]] = None
    tags: Optional[List[TermOut]] = None


class CommentOut(BaseModel):
    coid: int
    cid: int
    author: str = ""
    mail: str
    url: str = ""
    created: str
    modified: str
    text: str = ""
    status: str = "approved"
    parent: int = 0
    authorId: int = 0


class AttachmentOut(BaseModel):
    cid: int
    title: str = ""
    type: str = ""
    size: int = 0
    created: str
    modified: str
    status: str = "publish"
