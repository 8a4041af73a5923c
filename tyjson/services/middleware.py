"""
Request gates run in order before an endpoint handler. Each gate either
returns quietly or raises an ``ApiError`` that ends the request.
"""

import logging
from typing import Callable, List

from tyjson.errors import NotFoundError
from tyjson.schemas.request import RequestContext
from tyjson.security import TOKEN_EXEMPT_ENDPOINT, check_restrictions, validate_token
from tyjson.settings import Settings

logger = logging.getLogger(__name__)

Middleware = Callable[[RequestContext], None]


class ApiSwitch:
    """The theme's switch setting wins over the deployment flag when stored."""

    def __init__(self, settings: Settings, theme_settings):
        self.settings = settings
        self.theme_settings = theme_settings

    def enabled(self) -> bool:
        stored = self.theme_settings.get(self.settings.REST_API_OVERRIDE_SETTING)
        if stored is None:
            return self.settings.REST_API_ENABLED
        return stored != "false"

    def __call__(self, ctx: RequestContext) -> None:
        if ctx.endpoint == TOKEN_EXEMPT_ENDPOINT:
            return
        if not self.enabled():
            logger.debug(f"REST API disabled, rejecting /{ctx.endpoint}")
            raise NotFoundError("Endpoint not found")


class TokenGate:
    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(self, ctx: RequestContext) -> None:
        if ctx.endpoint == TOKEN_EXEMPT_ENDPOINT:
            return
        validate_token(ctx.authorization, self.settings.token)


class RestrictionGate:
    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(self, ctx: RequestContext) -> None:
        check_restrictions(ctx.method, ctx.endpoint, self.settings.restrictions)


def default_chain(settings: Settings, theme_settings) -> List[Middleware]:
    return [
        ApiSwitch(settings, theme_settings),
        TokenGate(settings),
        RestrictionGate(settings),
    ]
