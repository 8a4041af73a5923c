import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tyjson.models.comment import Comment
from tyjson.models.content import Content
from tyjson.models.field import Field
from tyjson.models.meta import Meta, Relationship

logger = logging.getLogger(__name__)

FIELD_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "=": lambda col, v: col == v,
    "!=": lambda col, v: col != v,
    ">": lambda col, v: col > v,
    ">=": lambda col, v: col >= v,
    "<": lambda col, v: col < v,
    "<=": lambda col, v: col <= v,
    "LIKE": lambda col, v: col.like(v),
    "NOT LIKE": lambda col, v: col.not_like(v),
    "IN": lambda col, v: col.in_(v),
    "NOT IN": lambda col, v: col.not_in(v),
}
LIST_OPERATORS = {"IN", "NOT IN"}
VALUE_COLUMNS = {"str": str, "int": int, "float": float}


def _coerce(value: Any, value_type: str) -> Any:
    return VALUE_COLUMNS[value_type](value)


def field_condition(condition: dict):
    """
    Translate one advanced-search condition into a ``cid IN (...)`` clause.
    Returns None for conditions that cannot be expressed (unknown operator,
    unknown value type, uncoercible value); callers skip those.
    """
    if not isinstance(condition, dict):
        return None
    name = condition.get("name") or ""
    operator = condition.get("operator") or "="
    value = condition.get("value", "")
    value_type = condition.get("value_type") or "str"
    if not all(isinstance(part, str) for part in (name, operator, value_type)):
        logger.debug(f"Skipping malformed field condition: {condition}")
        return None

    operator = operator.upper()
    apply_op = FIELD_OPERATORS.get(operator)
    if apply_op is None or value_type not in VALUE_COLUMNS:
        logger.debug(f"Skipping unsupported field condition: {condition}")
        return None

    try:
        if operator in LIST_OPERATORS:
            values = value if isinstance(value, list) else str(value).split(",")
            value = [_coerce(v, value_type) for v in values]
        else:
            value = _coerce(value, value_type)
    except (TypeError, ValueError):
        logger.debug(f"Skipping field condition with bad value: {condition}")
        return None

    column = getattr(Field, f"{value_type}_value")
    subquery = select(Field.cid).where(Field.name == name, apply_op(column, value))
    return Content.cid.in_(subquery)


class ContentRepo:
    """Read/write gateway over the CMS content tables."""

    def __init__(self, db: Session):
        self.db = db

    # --- contents ---

    def _contents(self, content_type: str, status: Optional[str] = "publish"):
        query = self.db.query(Content).filter(Content.type == content_type)
        if status is not None:
            query = query.filter(Content.status == status)
        return query

    @staticmethod
    def _page(query, page_size: int, current_page: int):
        return query.offset((current_page - 1) * page_size).limit(page_size)

    def list_contents(
        self,
        content_type: str,
        page_size: int,
        current_page: int,
        status: Optional[str] = "publish",
    ) -> List[Content]:
        query = self._contents(content_type, status).order_by(Content.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_contents(self, content_type: str, status: Optional[str] = "publish") -> int:
        return self._contents(content_type, status).count()

    def get_content(self, cid: int, published_only: bool = True) -> Optional[Content]:
        query = self.db.query(Content).filter(Content.cid == cid)
        if published_only:
            query = query.filter(
                Content.type.in_(("post", "page")), Content.status == "publish"
            )
        return query.first()

    def get_content_by_slug(self, slug: str) -> Optional[Content]:
        return (
            self.db.query(Content)
            .filter(
                Content.slug == slug,
                Content.type.in_(("post", "page")),
                Content.status == "publish",
            )
            .first()
        )

    # --- terms ---

    def list_terms(self, term_type: str) -> List[Meta]:
        order = Meta.order.asc() if term_type == "category" else Meta.count.desc()
        return self.db.query(Meta).filter(Meta.type == term_type).order_by(order).all()

    def get_term(
        self, term_type: str, mid: Optional[int] = None, slug: Optional[str] = None
    ) -> Optional[Meta]:
        query = self.db.query(Meta).filter(Meta.type == term_type)
        if mid is not None:
            query = query.filter(Meta.mid == mid)
        else:
            query = query.filter(Meta.slug == slug)
        return query.first()

    def _posts_in_term(self, mid: int):
        return (
            self._contents("post")
            .join(Relationship, Relationship.cid == Content.cid)
            .filter(Relationship.mid == mid)
        )

    def list_posts_in_term(self, mid: int, page_size: int, current_page: int) -> List[Content]:
        query = self._posts_in_term(mid).order_by(Content.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_posts_in_term(self, mid: int) -> int:
        return self._posts_in_term(mid).count()

    def get_post_terms(self, cid: int, term_type: str) -> List[Meta]:
        return (
            self.db.query(Meta)
            .join(Relationship, Relationship.mid == Meta.mid)
            .filter(Relationship.cid == cid, Meta.type == term_type)
            .all()
        )

    # --- custom fields ---

    def get_post_fields(self, cid: int) -> Dict[str, Any]:
        rows = self.db.query(Field).filter(Field.cid == cid).all()
        return {row.name: getattr(row, f"{row.type}_value", None) for row in rows}

    def set_post_field(self, cid: int, name: str, value: str) -> None:
        row = self.db.get(Field, (cid, name))
        if row:
            row.type = "str"
            row.str_value = value
        else:
            self.db.add(Field(cid=cid, name=name, type="str", str_value=value))
        self.db.commit()

    def _posts_by_field(self, name: str, value: str):
        subquery = select(Field.cid).where(Field.name == name, Field.str_value == value)
        return self._contents("post").filter(Content.cid.in_(subquery))

    def list_posts_by_field(
        self, name: str, value: str, page_size: int, current_page: int
    ) -> List[Content]:
        query = self._posts_by_field(name, value).order_by(Content.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_posts_by_field(self, name: str, value: str) -> int:
        return self._posts_by_field(name, value).count()

    def _posts_by_conditions(self, conditions: Iterable[dict]):
        query = self._contents("post")
        for condition in conditions:
            clause = field_condition(condition)
            if clause is not None:
                query = query.filter(clause)
        return query

    def list_posts_by_conditions(
        self, conditions: List[dict], page_size: int, current_page: int
    ) -> List[Content]:
        query = self._posts_by_conditions(conditions).order_by(Content.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_posts_by_conditions(self, conditions: List[dict]) -> int:
        return self._posts_by_conditions(conditions).count()

    # --- search ---

    def _search(self, keyword: str):
        pattern = "%" + keyword.replace(" ", "%") + "%"
        return self._contents("post").filter(
            Content.title.like(pattern) | Content.text.like(pattern)
        )

    def search_posts(self, keyword: str, page_size: int, current_page: int) -> List[Content]:
        query = self._search(keyword).order_by(Content.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_search_posts(self, keyword: str) -> int:
        return self._search(keyword).count()

    # --- comments ---

    def list_comments(self, page_size: int, current_page: int) -> List[Comment]:
        query = self.db.query(Comment).order_by(Comment.created.desc())
        return self._page(query, page_size, current_page).all()

    def count_comments(self) -> int:
        return self.db.query(func.count(Comment.coid)).scalar() or 0

    def list_post_comments(self, cid: int, page_size: int, current_page: int) -> List[Comment]:
        query = (
            self.db.query(Comment)
            .filter(Comment.cid == cid)
            .order_by(Comment.created.asc())
        )
        return self._page(query, page_size, current_page).all()

    def count_post_comments(self, cid: int) -> int:
        return self.db.query(Comment).filter(Comment.cid == cid).count()

    def get_comment(self, coid: int) -> Optional[Comment]:
        return self.db.get(Comment, coid)

    def insert_comment(self, values: Dict[str, Any]) -> int:
        comment = Comment(**values)
        self.db.add(comment)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(comment)
        return comment.coid
