from tyjson.controllers.base import BaseController, ControllerResult
from tyjson.errors import ValidationError


class SearchController(BaseController):
    def handle(self) -> ControllerResult:
        # /search/<keyword> wins over ?keyword=; both arrive decoded once
        keyword = self.ctx.segment(1) or self.ctx.get_query("keyword")
        if not keyword:
            raise ValidationError("Missing search keyword")

        posts = self.repo.search_posts(keyword, self.ctx.page_size, self.ctx.current_page)
        total = self.repo.count_search_posts(keyword)
        return self.paginated(
            {
                "keyword": keyword,
                "posts": [self.formatter.format_post(row) for row in posts],
            },
            total,
        )
