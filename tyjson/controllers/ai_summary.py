import hmac
import logging
from typing import Mapping, Optional

from tyjson.controllers.base import BaseController, ControllerResult
from tyjson.errors import AuthError, PermissionDeniedError, ValidationError
from tyjson.schemas.request import RequestBody
from tyjson.security import csrf_token, resolve_user, user_passes, verify_signature
from tyjson.services.request_context import parse_int
from tyjson.services.summary_service import SummaryService

logger = logging.getLogger(__name__)

ASYNC_TRIGGER = "async"


class AISummaryController(BaseController):
    """
    Generates a post summary on demand. Editors call it from the admin with a
    CSRF token; the publish hook calls it back with a signed, time-boxed URL.
    """

    def __init__(
        self,
        *args,
        summary_service: SummaryService,
        users_repo,
        cookies: Optional[Mapping[str, str]] = None,
        body: Optional[RequestBody] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.summary_service = summary_service
        self.users_repo = users_repo
        self.cookies = cookies or {}
        self.body = body or RequestBody()

    def handle_generate(self) -> ControllerResult:
        cid = parse_int(self.ctx.get_query("cid"), 0)
        if cid == 0:
            cid = parse_int(self.body.get("cid"), 0)
        if cid <= 0:
            raise ValidationError("Invalid CID")

        if self.ctx.get_query("trigger") == ASYNC_TRIGGER:
            verify_signature(
                cid,
                parse_int(self.ctx.get_query("time"), 0),
                self.ctx.get_query("sign", ""),
                self.settings.SITE_SECRET,
            )
        else:
            self._check_editor()

        summary = self.summary_service.generate(cid)
        return ControllerResult(data={"summary": summary})

    def _check_editor(self) -> None:
        user = resolve_user(self.cookies, self.users_repo)
        if not user_passes(user, "editor"):
            raise AuthError("Unauthorized")

        token = self.body.get("token") or self.ctx.get_query("token") or ""
        expected = csrf_token(self.settings.SITE_SECRET)
        if not hmac.compare_digest(str(token).encode(), expected.encode()):
            logger.warning(f"Rejected AI summary request from user {user.uid}: bad token")
            raise PermissionDeniedError("Invalid Security Token")
