import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from tyjson.repos.content_repo import ContentRepo
from tyjson.schemas.envelope import Pagination
from tyjson.schemas.request import RequestContext
from tyjson.services.formatter import ResourceFormatter
from tyjson.settings import Settings


class ControllerResult(BaseModel):
    data: Any = None
    meta: Dict[str, Any] = Field(default_factory=dict)


def build_pagination(total: int, page_size: int, current_page: int) -> Pagination:
    total_pages = max(1, math.ceil(total / page_size)) if page_size > 0 else 1
    return Pagination(
        total=total,
        pageSize=page_size,
        currentPage=current_page,
        totalPages=total_pages,
    )


def is_numeric(value: Optional[str]) -> bool:
    return value is not None and value.isdigit()


class BaseController:
    def __init__(
        self,
        ctx: RequestContext,
        repo: ContentRepo,
        formatter: ResourceFormatter,
        settings: Settings,
    ):
        self.ctx = ctx
        self.repo = repo
        self.formatter = formatter
        self.settings = settings

    def paginated(self, data: Any, total: int) -> ControllerResult:
        pagination = build_pagination(total, self.ctx.page_size, self.ctx.current_page)
        return ControllerResult(data=data, meta={"pagination": pagination.model_dump()})
