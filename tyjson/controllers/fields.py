import json

from tyjson.controllers.base import BaseController, ControllerResult
from tyjson.errors import PermissionDeniedError, ValidationError


class FieldController(BaseController):
    """Post lookup by custom field values."""

    def _check_field(self, name: str) -> None:
        if name in self.settings.restrictions.fields:
            raise PermissionDeniedError("Access Forbidden")

    def handle_field_search(self) -> ControllerResult:
        name = self.ctx.segment(1)
        value = self.ctx.segment(2)
        if name is None or value is None:
            raise ValidationError("Missing field parameters")
        self._check_field(name)

        posts = self.repo.list_posts_by_field(
            name, value, self.ctx.page_size, self.ctx.current_page
        )
        total = self.repo.count_posts_by_field(name, value)
        return self.paginated(
            {
                "conditions": {"name": name, "value": value},
                "posts": [self.formatter.format_post(row) for row in posts],
            },
            total,
        )

    def handle_advanced_search(self) -> ControllerResult:
        raw = self.ctx.get_query("conditions")
        if not raw:
            raise ValidationError("Invalid search conditions")
        try:
            conditions = json.loads(raw)
        except ValueError:
            raise ValidationError("Invalid JSON in conditions parameter")
        if not isinstance(conditions, list):
            raise ValidationError("Invalid search conditions")

        for condition in conditions:
            if isinstance(condition, dict) and isinstance(condition.get("name"), str):
                self._check_field(condition["name"])

        posts = self.repo.list_posts_by_conditions(
            conditions, self.ctx.page_size, self.ctx.current_page
        )
        total = self.repo.count_posts_by_conditions(conditions)
        return self.paginated(
            {
                "conditions": conditions,
                "posts": [self.formatter.format_post(row) for row in posts],
            },
            total,
        )
