import json
import logging
from typing import Any, Dict, Mapping, Optional

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from tyjson.errors import ContentFormat
from tyjson.schemas.request import RequestBody, RequestContext

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_EXCERPT_LENGTH = 200
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def strip_base_path(request_path: str, base_path: str) -> str:
    """Return the part of the URI after the API prefix, ``/`` when empty."""
    base_path = "/" + base_path.strip("/")
    if not request_path.startswith(base_path):
        return "/"
    return request_path[len(base_path) :] or "/"


def parse_int(value: Optional[str], default: int) -> int:
    """Lenient integer parse; anything unparseable falls back to ``default``."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default


def build_context(
    *,
    method: str,
    request_path: str,
    base_path: str,
    query: Mapping[str, str],
    headers: Optional[Mapping[str, str]] = None,
    client_ip: str = "",
) -> RequestContext:
    headers = headers or {}
    path = strip_base_path(request_path, base_path)
    segments = tuple(part for part in path.strip("/").split("/") if part)

    fmt = str(query.get("format", ContentFormat.HTML.value)).lower()
    try:
        content_format = ContentFormat(fmt)
    except ValueError:
        content_format = ContentFormat.HTML

    page_size = parse_int(query.get("pageSize"), DEFAULT_PAGE_SIZE)
    current_page = parse_int(query.get("page"), 1)
    excerpt_length = parse_int(query.get("excerptLength"), DEFAULT_EXCERPT_LENGTH)

    return RequestContext(
        method=method.upper(),
        path=path,
        path_segments=segments,
        content_format=content_format,
        page_size=max(1, min(page_size, MAX_PAGE_SIZE)),
        current_page=max(1, current_page),
        excerpt_length=max(0, excerpt_length),
        query=dict(query),
        authorization=headers.get("authorization"),
        origin=headers.get("origin"),
        client_ip=client_ip,
        user_agent=headers.get("user-agent", ""),
    )


def context_from_request(request: Request, base_path: str) -> RequestContext:
    client_ip = request.client.host if request.client else ""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    return build_context(
        method=request.method,
        request_path=request.url.path,
        base_path=base_path,
        query=request.query_params,
        headers=request.headers,
        client_ip=client_ip,
    )


async def read_body(request: Request) -> RequestBody:
    """Decode a POST body as JSON, falling back to the submitted form fields."""
    raw = await request.body()
    json_data = None
    if raw:
        try:
            json_data = json.loads(raw)
        except ValueError:
            logger.debug("Request body is not JSON")

    form: Dict[str, Any] = {}
    content_type = request.headers.get("content-type", "")
    if not isinstance(json_data, dict) and content_type.startswith(FORM_CONTENT_TYPES):
        try:
            submitted = await request.form()
        except (HTTPException, MultiPartException) as e:
            logger.debug(f"Unreadable form body: {e}")
            return RequestBody(json_data=json_data)
        for key, value in submitted.multi_items():
            if not isinstance(value, str):
                continue
            if key.endswith("[]"):
                form.setdefault(key[:-2], []).append(value)
            else:
                form[key] = value
    return RequestBody(json_data=json_data, form=form)
