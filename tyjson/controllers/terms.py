from tyjson.controllers.base import BaseController, ControllerResult, is_numeric
from tyjson.errors import NotFoundError


class TermController(BaseController):
    """Categories and tags share one shape; ``term_type`` picks which."""

    def __init__(self, *args, term_type: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.term_type = term_type

    def handle(self) -> ControllerResult:
        identifier = self.ctx.segment(1)
        if identifier is None:
            terms = [self.formatter.format_term(row) for row in self.repo.list_terms(self.term_type)]
            return ControllerResult(data=terms, meta={"total": len(terms)})

        if is_numeric(identifier):
            term = self.repo.get_term(self.term_type, mid=int(identifier))
        else:
            term = self.repo.get_term(self.term_type, slug=identifier)
        if term is None:
            raise NotFoundError(f"{self.term_type.capitalize()} not found")

        posts = self.repo.list_posts_in_term(
            term.mid, self.ctx.page_size, self.ctx.current_page
        )
        total = self.repo.count_posts_in_term(term.mid)
        return self.paginated(
            {
                self.term_type: self.formatter.format_term(term),
                "posts": [self.formatter.format_post(row) for row in posts],
            },
            total,
        )
