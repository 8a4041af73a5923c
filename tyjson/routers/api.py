import logging
from typing import Callable, Dict, List, Mapping, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from tyjson import dependencies as deps
from tyjson.controllers.ai_summary import AISummaryController
from tyjson.controllers.base import ControllerResult
from tyjson.controllers.comments import CommentController
from tyjson.controllers.fields import FieldController
from tyjson.controllers.index import IndexController
from tyjson.controllers.options import OptionController
from tyjson.controllers.posts import AttachmentController, PageController, PostController
from tyjson.controllers.search import SearchController
from tyjson.controllers.terms import TermController
from tyjson.controllers.ttdf import TTDFController
from tyjson.errors import ApiError, HttpCode, MethodNotAllowedError, NotFoundError
from tyjson.repos.content_repo import ContentRepo
from tyjson.schemas.request import RequestBody, RequestContext
from tyjson.security import get_settings
from tyjson.services.formatter import ResourceFormatter, site_timezone
from tyjson.services.middleware import Middleware, default_chain
from tyjson.services.request_context import context_from_request, read_body
from tyjson.services.response_writer import ResponseWriter
from tyjson.services.summary_service import SummaryService
from tyjson.settings import Settings, settings

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST")
ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter(prefix=settings.api_base_path)


class ApiDispatcher:
    """
    Runs one API request: method check, the gate chain, then the endpoint
    handler named by the first path segment. Every outcome, including
    unexpected exceptions, leaves through the response writer.
    """

    def __init__(
        self,
        ctx: RequestContext,
        writer: ResponseWriter,
        *,
        settings: Settings,
        repo: ContentRepo,
        options_repo,
        theme_settings,
        users_repo,
        summary_service: Optional[SummaryService] = None,
        body: Optional[RequestBody] = None,
        cookies: Optional[Mapping[str, str]] = None,
        middleware: Optional[List[Middleware]] = None,
    ):
        self.ctx = ctx
        self.writer = writer
        self.settings = settings
        self.repo = repo
        self.options_repo = options_repo
        self.theme_settings = theme_settings
        self.users_repo = users_repo
        self.summary_service = summary_service
        self.body = body or RequestBody()
        self.cookies = cookies or {}
        self.middleware = (
            default_chain(settings, theme_settings) if middleware is None else middleware
        )
        self.formatter = ResourceFormatter(
            repo,
            ctx.content_format,
            ctx.excerpt_length,
            site_timezone(settings.TIMEZONE),
        )

    def endpoints(self) -> Dict[str, Callable[[], ControllerResult]]:
        args = (self.ctx, self.repo, self.formatter, self.settings)

        def index():
            return IndexController(*args, options_repo=self.options_repo).handle()

        def comments():
            controller = CommentController(
                *args, options_repo=self.options_repo, body=self.body
            )
            if self.ctx.method == "POST":
                return controller.handle_create()
            return controller.handle()

        return {
            "": index,
            "index": index,
            "posts": lambda: PostController(*args).handle_list(),
            "pages": lambda: PageController(*args).handle_list(),
            "content": lambda: PostController(*args).handle_content(),
            "category": lambda: TermController(*args, term_type="category").handle(),
            "tag": lambda: TermController(*args, term_type="tag").handle(),
            "search": lambda: SearchController(*args).handle(),
            "options": lambda: OptionController(
                *args, options_repo=self.options_repo
            ).handle(),
            "fields": lambda: FieldController(*args).handle_field_search(),
            "advancedFields": lambda: FieldController(*args).handle_advanced_search(),
            "comments": comments,
            "attachments": lambda: AttachmentController(*args).handle_list(),
            "ttdf": lambda: TTDFController(
                *args,
                theme_settings=self.theme_settings,
                options_repo=self.options_repo,
                users_repo=self.users_repo,
                cookies=self.cookies,
                body=self.body,
            ).handle(),
            "ai-summary": lambda: AISummaryController(
                *args,
                summary_service=self.summary_service,
                users_repo=self.users_repo,
                cookies=self.cookies,
                body=self.body,
            ).handle_generate(),
        }

    def handle(self) -> JSONResponse:
        ctx = self.ctx
        logger.debug(f"{ctx.method} {ctx.path} -> endpoint {ctx.endpoint or 'index'!r}")
        try:
            # CORS preflight
            if ctx.method == "OPTIONS":
                return self.writer.send()
            if ctx.method not in ALLOWED_METHODS:
                raise MethodNotAllowedError("Method Not Allowed")

            for gate in self.middleware:
                gate(ctx)

            handler = self.endpoints().get(ctx.endpoint)
            if handler is None:
                raise NotFoundError("Endpoint not found")
            result = handler()
            return self.writer.send(result.data, result.meta)
        except ApiError as e:
            logger.debug(f"{ctx.method} {ctx.path} rejected: {int(e.code)} {e.message}")
            return self.writer.send(code=e.code, message=e.message)
        except Exception as e:
            if self.settings.DEBUG:
                logger.exception(f"Unhandled error serving {ctx.method} {ctx.path}")
            else:
                logger.error(f"Unhandled error serving {ctx.method} {ctx.path}: {e}")
            return self.writer.error("Internal Server Error", HttpCode.INTERNAL_ERROR, exc=e)


@router.api_route("", methods=ROUTE_METHODS, include_in_schema=False)
@router.api_route("/{path:path}", methods=ROUTE_METHODS)
async def handle_api(
    request: Request,
    current_settings: Settings = Depends(get_settings),
    repo: ContentRepo = Depends(deps.get_content_repo),
    options_repo=Depends(deps.get_options_repo),
    theme_settings=Depends(deps.get_theme_settings_repo),
    users_repo=Depends(deps.get_users_repo),
    summary_service: SummaryService = Depends(deps.get_summary_service),
):
    ctx = context_from_request(request, current_settings.api_base_path)
    body = await read_body(request) if ctx.method == "POST" else RequestBody()
    writer = ResponseWriter(
        ctx.content_format,
        origin=ctx.origin,
        allow_origin=current_settings.CORS_ALLOW_ORIGIN,
        extra_headers=current_settings.RESPONSE_HEADERS,
        debug=current_settings.DEBUG,
    )
    dispatcher = ApiDispatcher(
        ctx,
        writer,
        settings=current_settings,
        repo=repo,
        options_repo=options_repo,
        theme_settings=theme_settings,
        users_repo=users_repo,
        summary_service=summary_service,
        body=body,
        cookies=request.cookies,
    )
    # Store and AI calls block, keep them off the event loop
    return await run_in_threadpool(dispatcher.handle)
