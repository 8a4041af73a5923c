import logging
import time
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email

from tyjson.controllers.base import BaseController, ControllerResult, is_numeric
from tyjson.errors import NotFoundError, ValidationError
from tyjson.schemas.request import RequestBody

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("cid", "text", "author", "mail")
FALSY_OPTION_VALUES = ("", "0", "false")


def _truthy_option(value: Optional[str]) -> bool:
    return value is not None and str(value).strip().lower() not in FALSY_OPTION_VALUES


def _normalize_url(url: str) -> str:
    if url.startswith(("http://", "https://")):
        return url
    return f"http://{url}"


class CommentController(BaseController):
    def __init__(self, *args, options_repo, body: Optional[RequestBody] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.options_repo = options_repo
        self.body = body or RequestBody()

    def handle(self) -> ControllerResult:
        sub_path = self.ctx.segment(1)

        if sub_path is None:
            comments = self.repo.list_comments(self.ctx.page_size, self.ctx.current_page)
            return self.paginated(
                [self.formatter.format_comment(row) for row in comments],
                self.repo.count_comments(),
            )

        if is_numeric(sub_path):
            comment = self.repo.get_comment(int(sub_path))
            if comment is None:
                raise NotFoundError("Comment not found")
            return ControllerResult(data=self.formatter.format_comment(comment))

        if sub_path == "cid":
            cid = self.ctx.segment(2)
            if not is_numeric(cid):
                raise ValidationError("Invalid post ID")
            if self.repo.get_content(int(cid)) is None:
                raise NotFoundError("Post not found")
            comments = self.repo.list_post_comments(
                int(cid), self.ctx.page_size, self.ctx.current_page
            )
            return self.paginated(
                [self.formatter.format_comment(row) for row in comments],
                self.repo.count_post_comments(int(cid)),
            )

        raise NotFoundError("Endpoint not found")

    def handle_create(self) -> ControllerResult:
        data = self.body.as_mapping()
        if data is None:
            raise ValidationError("Invalid request body")

        for field in REQUIRED_FIELDS:
            if not data.get(field):
                raise ValidationError(f"Missing required field: {field}")

        mail = str(data["mail"]).strip()
        try:
            validate_email(mail, check_deliverability=False)
        except EmailNotValidError as e:
            logger.debug(f"Rejected comment email {mail!r}: {e}")
            raise ValidationError("Invalid email address")

        cid = str(data["cid"]).strip()
        post = self.repo.get_content(int(cid)) if is_numeric(cid) else None
        if post is None:
            raise NotFoundError(f"Post not found: {cid}")

        moderated = _truthy_option(self.options_repo.get("commentsRequireModeration"))
        values: Dict[str, Any] = {
            "cid": post.cid,
            "created": int(time.time()),
            "author": str(data["author"]),
            "mail": mail,
            "text": str(data["text"]),
            "status": "waiting" if moderated else "approved",
            "agent": self.ctx.user_agent,
            "ip": self.ctx.client_ip or "unknown",
            "type": "comment",
            "ownerId": post.authorId or 0,
            "parent": 0,
        }
        if data.get("url"):
            values["url"] = _normalize_url(str(data["url"]).strip())
        parent = str(data.get("parent") or "")
        if is_numeric(parent):
            values["parent"] = int(parent)

        coid = self.repo.insert_comment(values)
        logger.info(f"Comment {coid} created on post {post.cid} ({values['status']})")
        return ControllerResult(data=self.formatter.format_comment(self.repo.get_comment(coid)))
