import platform

from tyjson.controllers.base import BaseController, ControllerResult

DEFAULT_LANG = "zh-CN"
FRAMEWORK_NAME = "TTDF"


class IndexController(BaseController):
    """Site and version summary served at the API root."""

    def __init__(self, *args, options_repo, **kwargs):
        super().__init__(*args, **kwargs)
        self.options_repo = options_repo

    def handle(self) -> ControllerResult:
        options = self.options_repo
        return ControllerResult(
            data={
                "site": {
                    "lang": options.get("lang") or DEFAULT_LANG,
                    "title": options.get("title"),
                    "description": options.get("description"),
                    "keywords": options.get("keywords"),
                    "siteUrl": options.get("siteUrl"),
                    "timezone": options.get("timezone"),
                    "theme": options.get("theme"),
                    "framework": FRAMEWORK_NAME,
                },
                "version": {
                    "framework": self.settings.FRAMEWORK_VERSION,
                    "theme": self.settings.THEME_VERSION,
                    "python": platform.python_version(),
                },
            }
        )
