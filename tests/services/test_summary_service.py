from types import SimpleNamespace

import pytest
from openai import OpenAIError

from tyjson.errors import NotFoundError, UpstreamError
from tyjson.services.summary_service import MAX_PROMPT_CHARS, SummaryService
from tyjson.settings import Settings
from tests.conftest import FakeAIClient, FakeContentRepo, FakeOptionsRepo

POST = SimpleNamespace(cid=1, title="Hello", text="<p>Hello **bold** [link](x)</p>")


def make_service(ai_client=None, options=None, **settings):
    repo = FakeContentRepo(posts=[POST])
    service = SummaryService(
        repo,
        FakeOptionsRepo(options),
        Settings(AI_API_KEY="", **settings),
        ai_client=ai_client,
    )
    return service, repo


def test_build_prompt_cleans_markup():
    prompt = SummaryService.build_prompt("T:${title} C:${content}", "Title", POST.text)

    assert prompt == "T:Title C:Hello bold link x"


def test_build_prompt_truncates_long_content():
    prompt = SummaryService.build_prompt("${content}", "", "a" * (MAX_PROMPT_CHARS + 500))

    assert prompt == "a" * MAX_PROMPT_CHARS + "..."


def test_generate_stores_summary():
    fake = FakeAIClient("Short summary.\n")
    service, repo = make_service(fake, options={"ai_model": "gpt-4o-mini"})

    assert service.generate(1) == "Short summary."
    assert repo.saved_fields == [(1, "AISummary", "Short summary.")]
    call = fake.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["temperature"] == 0.7
    assert "Hello bold link x" in call["messages"][0]["content"]


def test_prompt_template_option_overrides_setting():
    fake = FakeAIClient()
    service, _ = make_service(fake, options={"ai_prompt_template": "Sum up ${title}"})

    service.generate(1)

    assert fake.calls[0]["messages"][0]["content"] == "Sum up Hello"


def test_generate_unknown_post():
    service, _ = make_service(FakeAIClient())

    with pytest.raises(NotFoundError):
        service.generate(2)


def test_generate_wraps_provider_errors():
    service, repo = make_service(FakeAIClient(error=OpenAIError("boom")))

    with pytest.raises(UpstreamError) as exc:
        service.generate(1)
    assert exc.value.message == "AI provider error: boom"
    assert repo.saved_fields == []


def test_generate_rejects_blank_reply():
    service, repo = make_service(FakeAIClient(content="   "))

    with pytest.raises(UpstreamError) as exc:
        service.generate(1)
    assert exc.value.message == "Empty response from AI or invalid JSON"
    assert repo.saved_fields == []


def test_client_requires_api_key():
    service, _ = make_service()

    with pytest.raises(UpstreamError) as exc:
        service.get_client()
    assert exc.value.message == "Missing API Configuration"


def test_client_built_from_options():
    service, _ = make_service(
        options={
            "ai_api_key": "k",
            "ai_api_endpoint": "https://llm.example/v1/chat/completions",
        },
        AI_TIMEOUT=12.0,
    )

    client = service.get_client()

    assert str(client.base_url).rstrip("/") == "https://llm.example/v1"
    assert client.api_key == "k"
    assert client.max_retries == 0
    assert client.timeout == 12.0
    assert service.get_client() is client
