from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    total: int
    pageSize: int
    currentPage: int
    totalPages: int


class ResponseEnvelope(BaseModel):
    code: int
    message: str
    data: Any = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    error_details: Optional[Dict[str, Any]] = None
