import asyncio

from starlette.requests import Request

from tyjson.errors import ContentFormat
from tyjson.services.request_context import (
    build_context,
    parse_int,
    read_body,
    strip_base_path,
)


def make_request(body: bytes, content_type: str) -> Request:
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/ty-json/comments",
        "headers": [(b"content-type", content_type.encode())],
        "query_string": b"",
    }
    return Request(scope, receive)


def test_strip_base_path():
    assert strip_base_path("/ty-json/posts/1", "/ty-json") == "/posts/1"
    assert strip_base_path("/ty-json", "ty-json/") == "/"
    assert strip_base_path("/elsewhere", "/ty-json") == "/"


def test_parse_int_is_lenient():
    assert parse_int("5", 1) == 5
    assert parse_int(" 7 ", 1) == 7
    assert parse_int("3.9", 1) == 3
    assert parse_int("abc", 1) == 1
    assert parse_int(None, 4) == 4


def test_build_context_parses_path_and_query():
    ctx = build_context(
        method="get",
        request_path="/ty-json/fields/mood/happy",
        base_path="/ty-json",
        query={"format": "Markdown", "pageSize": "5", "page": "2", "excerptLength": "50"},
        headers={"authorization": "Bearer x", "user-agent": "ua"},
        client_ip="10.0.0.1",
    )

    assert ctx.method == "GET"
    assert ctx.endpoint == "fields"
    assert ctx.path_segments == ("fields", "mood", "happy")
    assert ctx.segment(3) is None
    assert ctx.content_format == ContentFormat.MARKDOWN
    assert (ctx.page_size, ctx.current_page, ctx.excerpt_length) == (5, 2, 50)
    assert ctx.authorization == "Bearer x"
    assert ctx.user_agent == "ua"


def test_build_context_clamps_paging_and_defaults_format():
    ctx = build_context(
        method="GET",
        request_path="/ty-json",
        base_path="/ty-json",
        query={"format": "xml", "pageSize": "5000", "page": "-3", "excerptLength": "-1"},
    )

    assert ctx.endpoint == ""
    assert ctx.content_format == ContentFormat.HTML
    assert ctx.page_size == 100
    assert ctx.current_page == 1
    assert ctx.excerpt_length == 0


def test_read_body_decodes_json():
    body = asyncio.run(read_body(make_request(b'{"cid": 1}', "application/json")))

    assert body.as_mapping() == {"cid": 1}
    assert body.get("cid") == 1


def test_read_body_falls_back_to_form_fields():
    request = make_request(
        b"cid=2&author=ann&tags%5B%5D=a&tags%5B%5D=b",
        "application/x-www-form-urlencoded",
    )

    body = asyncio.run(read_body(request))

    assert body.json_data is None
    assert body.as_mapping() == {"cid": "2", "author": "ann", "tags": ["a", "b"]}


def test_read_body_without_usable_payload():
    body = asyncio.run(read_body(make_request(b"not json", "text/plain")))

    assert body.as_mapping() is None
    assert body.get("cid", "missing") == "missing"


def test_read_body_with_broken_multipart_is_empty():
    body = asyncio.run(read_body(make_request(b"cid=1", "multipart/form-data")))

    assert body.as_mapping() is None
