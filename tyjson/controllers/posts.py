from tyjson.controllers.base import BaseController, ControllerResult, is_numeric
from tyjson.errors import NotFoundError, ValidationError


class PostController(BaseController):
    content_type = "post"

    def handle_list(self) -> ControllerResult:
        rows = self.repo.list_contents(
            self.content_type, self.ctx.page_size, self.ctx.current_page
        )
        total = self.repo.count_contents(self.content_type)
        return self.paginated([self.formatter.format_post(row) for row in rows], total)

    def handle_content(self) -> ControllerResult:
        identifier = self.ctx.segment(1)
        if identifier is None:
            raise ValidationError("Missing post identifier")

        if is_numeric(identifier):
            post = self.repo.get_content(int(identifier))
        else:
            post = self.repo.get_content_by_slug(identifier)
        if post is None:
            raise NotFoundError("Post not found")
        return ControllerResult(data=self.formatter.format_post(post))


class PageController(PostController):
    content_type = "page"


class AttachmentController(BaseController):
    def handle_list(self) -> ControllerResult:
        rows = self.repo.list_contents(
            "attachment", self.ctx.page_size, self.ctx.current_page
        )
        total = self.repo.count_contents("attachment")
        return self.paginated(
            [self.formatter.format_attachment(row) for row in rows], total
        )
