import logging
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional

from tyjson.controllers.base import BaseController, ControllerResult
from tyjson.errors import InternalError, MethodNotAllowedError, NotFoundError, ValidationError
from tyjson.schemas.request import RequestBody
from tyjson.security import require_admin, resolve_user
from tyjson.services import theme_fields

logger = logging.getLogger(__name__)

# Form plumbing posted alongside the settings
SKIPPED_KEYS = ("action", "_")


class TTDFController(BaseController):
    """Theme settings administration. Every sub-route needs an administrator."""

    def __init__(
        self,
        *args,
        theme_settings,
        options_repo,
        users_repo,
        cookies: Optional[Mapping[str, str]] = None,
        body: Optional[RequestBody] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.theme_settings = theme_settings
        self.options_repo = options_repo
        self.users_repo = users_repo
        self.cookies = cookies or {}
        self.body = body or RequestBody()

    def handle(self) -> ControllerResult:
        routes: Dict[str, Callable[[], ControllerResult]] = {
            "options": self.handle_options,
            "config": self.handle_config,
            "form-data": self.handle_form_data,
            "theme-info": self.handle_theme_info,
            "export": self.handle_export,
            "import": self.handle_import,
        }
        handler = routes.get(self.ctx.segment(1) or "")
        if handler is None:
            raise NotFoundError("Endpoint not found")

        require_admin(resolve_user(self.cookies, self.users_repo))
        return handler()

    def _load_tabs(self) -> dict:
        try:
            return theme_fields.load_schema(self.settings.THEME_SETUP_FILE)
        except (OSError, ValueError) as e:
            logger.error(f"Could not load theme schema: {e}")
            raise InternalError(f"Failed to load theme config: {e}") from e

    def handle_options(self) -> ControllerResult:
        if self.ctx.method == "GET":
            return ControllerResult(data=self.theme_settings.all())
        if self.ctx.method != "POST":
            raise MethodNotAllowedError("Method Not Allowed")

        data = self.body.as_mapping()
        if data is None:
            raise ValidationError("Invalid data format")

        entries = {name: value for name, value in data.items() if name not in SKIPPED_KEYS}
        self._check_names(entries)
        for name, value in entries.items():
            self.theme_settings.set(name, theme_fields.to_stored(value))
        saved = len(entries)
        logger.info(f"Saved {saved} theme settings")
        return ControllerResult(data={"message": "Settings saved"}, meta={"saved_count": saved})

    def _check_names(self, entries: dict) -> None:
        # all or nothing: each set() commits on its own
        for name in entries:
            self.theme_settings.full_name(name)

    def handle_config(self) -> ControllerResult:
        tabs = self._load_tabs()
        return ControllerResult(
            data={"tabs": tabs, "fields": theme_fields.fields_by_name(tabs)}
        )

    def handle_form_data(self) -> ControllerResult:
        tabs = self._load_tabs()
        return ControllerResult(data=theme_fields.form_data(tabs, self.theme_settings))

    def handle_theme_info(self) -> ControllerResult:
        site_url = (self.options_repo.get("siteUrl") or "").rstrip("/")
        return ControllerResult(
            data={
                "themeName": self.settings.THEME_NAME,
                "themeVersion": self.settings.THEME_VERSION,
                "ttdfVersion": self.settings.FRAMEWORK_VERSION,
                "apiUrl": f"{site_url}{self.settings.api_base_path}/ttdf",
            }
        )

    def handle_export(self) -> ControllerResult:
        return ControllerResult(
            data={
                "version": self.settings.THEME_VERSION,
                "theme": self.settings.THEME_NAME,
                "exportTime": datetime.now(self.formatter.tz).isoformat(),
                "settings": self.theme_settings.all(current_theme_only=True),
            }
        )

    def handle_import(self) -> ControllerResult:
        data = self.body.as_mapping()
        if data is None:
            raise ValidationError("Invalid import data")
        settings = data.get("settings")
        if not isinstance(settings, dict):
            raise ValidationError("Invalid import data format: missing settings")

        entries = {name: value for name, value in settings.items() if name}
        self._check_names(entries)
        for name, value in entries.items():
            self.theme_settings.set(name, theme_fields.to_stored(value))
        imported = len(entries)
        logger.info(f"Imported {imported} theme settings")
        return ControllerResult(
            data={"message": "Settings imported"}, meta={"imported_count": imported}
        )
