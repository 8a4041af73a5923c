import hashlib
import html
import json
import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import bleach
import markdown

from tyjson.errors import ContentFormat
from tyjson.schemas.content import AttachmentOut, CommentOut, PostOut, TermOut

logger = logging.getLogger(__name__)

HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)

# Applied in order; each match is replaced by a single space.
EXCERPT_STRIP_PATTERNS = [
    re.compile(r"```.*?```", re.S),
    re.compile(r"~~~.*?~~~", re.S),
    re.compile(r"!\[[^\]]*\]\([^)]*\)"),
    re.compile(r"\[[^\]]*\]\([^)]*\)"),
    re.compile(r"^#{1,6}\s*", re.M),
    re.compile(r"[*_]{1,3}"),
    re.compile(r"^\s*>\s*", re.M),
    re.compile(r"\s+"),
]

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def site_timezone(name: str) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return timezone.utc


def to_iso(timestamp: Optional[int], tz: tzinfo = timezone.utc) -> str:
    return datetime.fromtimestamp(int(timestamp or 0), tz=tz).isoformat()


def hash_mail(mail: Optional[str]) -> str:
    return hashlib.md5((mail or "").encode("utf-8")).hexdigest()


def row_to_dict(row) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def strip_tags(text: str) -> str:
    return html.unescape(bleach.clean(text, tags=set(), strip=True, strip_comments=True))


def generate_excerpt(content: str, length: int) -> str:
    """Plain-text excerpt of at most ``length`` characters, cut on a word boundary."""
    if length <= 0:
        return ""

    text = strip_tags(content or "")
    for pattern in EXCERPT_STRIP_PATTERNS:
        text = pattern.sub(" ", text)
    text = text.strip()

    if len(text) > length:
        text = text[:length]
        match = re.match(r"^(.*)\s\S*$", text, re.S)
        if match:
            text = match.group(1)
    return text


class ResourceFormatter:
    """Projects store rows into the public JSON shapes."""

    def __init__(
        self,
        repo,
        content_format: ContentFormat = ContentFormat.HTML,
        excerpt_length: int = 200,
        tz: tzinfo = timezone.utc,
    ):
        self.repo = repo
        self.content_format = content_format
        self.excerpt_length = excerpt_length
        self.tz = tz

    def format_content(self, content: Optional[str]) -> str:
        text = HTML_COMMENT_RE.sub("", content or "")
        if self.content_format == ContentFormat.MARKDOWN:
            return text
        return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)

    def format_post(self, post) -> Dict[str, Any]:
        formatted = PostOut(
            cid=post.cid or 0,
            title=post.title or "",
            slug=post.slug or "",
            type=post.type or "post",
            created=to_iso(post.created, self.tz),
            modified=to_iso(post.modified, self.tz),
            commentsNum=post.commentsNum or 0,
            authorId=post.authorId or 0,
            status=post.status or "publish",
            contentType=self.content_format.value,
            fields=self.repo.get_post_fields(post.cid),
            content=self.format_content(post.text),
            excerpt=generate_excerpt(post.text or "", self.excerpt_length),
        )
        if formatted.type == "post":
            formatted.categories = [
                TermOut(**self.format_term(term))
                for term in self.repo.get_post_terms(post.cid, "category")
            ]
            formatted.tags = [
                TermOut(**self.format_term(term))
                for term in self.repo.get_post_terms(post.cid, "tag")
            ]
        return formatted.model_dump(exclude_none=True)

    def format_term(self, term) -> Dict[str, Any]:
        data = row_to_dict(term)
        data["description"] = self.format_content(data.get("description"))
        return data

    format_category = format_term
    format_tag = format_term

    def format_comment(self, comment) -> Dict[str, Any]:
        created = to_iso(comment.created, self.tz)
        modified = getattr(comment, "modified", None)
        return CommentOut(
            coid=comment.coid or 0,
            cid=comment.cid or 0,
            author=comment.author or "",
            mail=hash_mail(comment.mail),
            url=comment.url or "",
            created=created,
            modified=to_iso(modified, self.tz) if modified else created,
            text=self.format_content(comment.text),
            status=comment.status or "approved",
            parent=comment.parent or 0,
            authorId=comment.authorId or 0,
        ).model_dump()

    def format_attachment(self, attachment) -> Dict[str, Any]:
        return AttachmentOut(
            cid=attachment.cid or 0,
            title=attachment.title or "",
            type=attachment.type or "",
            size=self._attachment_size(attachment.text),
            created=to_iso(attachment.created, self.tz),
            modified=to_iso(attachment.modified, self.tz),
            status=attachment.status or "publish",
        ).model_dump()

    @staticmethod
    def _attachment_size(raw: Optional[str]) -> int:
        if not raw:
            return 0
        try:
            meta = json.loads(raw)
        except ValueError:
            return 0
        if isinstance(meta, dict):
            try:
                return int(meta.get("size") or 0)
            except (TypeError, ValueError):
                return 0
        return 0
