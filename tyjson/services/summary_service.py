import logging
import re
from typing import Optional

from openai import OpenAI, OpenAIError

from tyjson.errors import NotFoundError, UpstreamError
from tyjson.services.formatter import strip_tags
from tyjson.settings import Settings

logger = logging.getLogger(__name__)

SUMMARY_FIELD = "AISummary"
MAX_PROMPT_CHARS = 3000

MARKUP_CHARS_RE = re.compile(r"[#*`~>\[\]()]")
WHITESPACE_RE = re.compile(r"\s+")


class SummaryService:
    """Generates an AI summary for a post and stores it as a custom field."""

    def __init__(
        self,
        repo,
        options_repo,
        settings: Settings,
        ai_client: OpenAI | None = None,
    ):
        self.repo = repo
        self.options_repo = options_repo
        self.settings = settings
        self._ai_client = ai_client

    def _option(self, name: str, fallback: str) -> str:
        return self.options_repo.get(name) or fallback

    @property
    def model(self) -> str:
        return self._option("ai_model", self.settings.AI_MODEL)

    @property
    def prompt_template(self) -> str:
        return self._option("ai_prompt_template", self.settings.AI_PROMPT_TEMPLATE)

    def get_client(self) -> OpenAI:
        if self._ai_client is not None:
            return self._ai_client

        api_key = self._option("ai_api_key", self.settings.AI_API_KEY)
        if not api_key:
            raise UpstreamError("Missing API Configuration")
        base_url = self._option("ai_api_endpoint", self.settings.AI_API_BASE_URL)
        # Older configs stored the full completions URL
        base_url = base_url.removesuffix("/chat/completions")
        self._ai_client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.settings.AI_TIMEOUT,
            max_retries=0,
        )
        return self._ai_client

    @staticmethod
    def build_prompt(template: str, title: str, text: str) -> str:
        content = strip_tags(text or "")
        content = MARKUP_CHARS_RE.sub(" ", content)
        content = WHITESPACE_RE.sub(" ", content).strip()
        if len(content) > MAX_PROMPT_CHARS:
            content = content[:MAX_PROMPT_CHARS] + "..."
        return template.replace("${title}", title or "").replace("${content}", content)

    def generate(self, cid: int) -> str:
        post = self.repo.get_content(cid, published_only=False)
        if post is None:
            raise NotFoundError(f"Post not found: {cid}")

        client = self.get_client()
        prompt = self.build_prompt(self.prompt_template, post.title, post.text)

        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error(f"AI summary request failed for {cid}: {e}")
            raise UpstreamError(f"AI provider error: {e}") from e

        summary: Optional[str] = None
        if completion.choices:
            summary = completion.choices[0].message.content
        if not summary or not summary.strip():
            logger.error(f"Empty AI summary response for {cid}")
            raise UpstreamError("Empty response from AI or invalid JSON")

        summary = summary.strip()
        self.repo.set_post_field(cid, SUMMARY_FIELD, summary)
        logger.info(f"Stored AI summary for post {cid}")
        return summary
