from tyjson.controllers.base import BaseController, ControllerResult
from tyjson.errors import NotFoundError, PermissionDeniedError

PUBLIC_OPTIONS = (
    "title",
    "description",
    "keywords",
    "theme",
    "plugins",
    "timezone",
    "lang",
    "charset",
    "contentType",
    "siteUrl",
    "rootUrl",
    "rewrite",
    "generator",
    "feedUrl",
    "searchUrl",
)


class OptionController(BaseController):
    def __init__(self, *args, options_repo, **kwargs):
        super().__init__(*args, **kwargs)
        self.options_repo = options_repo

    def handle(self) -> ControllerResult:
        restricted = self.settings.restrictions.options
        name = self.ctx.segment(1)

        if name is None:
            stored = self.options_repo.all()
            return ControllerResult(
                data={
                    option: stored[option]
                    for option in PUBLIC_OPTIONS
                    if option not in restricted and option in stored
                }
            )

        if name in restricted:
            raise PermissionDeniedError("Access Forbidden")
        value = self.options_repo.get(name) if name in PUBLIC_OPTIONS else None
        if value is None:
            raise NotFoundError("Option not found")
        return ControllerResult(data={"name": name, "value": value})
