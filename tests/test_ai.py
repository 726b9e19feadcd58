import json

import httpx
import pytest

from llm_search_audit.ai.enhance import (
    AI_FINDING_DETAIL,
    STEP_AEO,
    blend_scores,
    enhance_aeo,
    enhance_report,
    generate_json_ld,
    generate_llms_files,
    run_parallel_enhancements,
    run_task,
)
from llm_search_audit.ai.providers import (
    AiMalformedOutputError,
    AiProviderError,
    AiTimeoutError,
    AnthropicProvider,
    GoogleProvider,
    OpenAIProvider,
    get_configured_generator,
    parse_json_response,
)
from llm_search_audit.checks import check_aeo_content
from llm_search_audit.config import Settings
from llm_search_audit.models import PageData

from helpers import (
    BARE_HTML,
    BASE_URL,
    FakeGenerator,
    aeo_reply,
    json_ld_reply,
    llms_reply,
    make_page,
    page_url,
    report_reply,
)


def json_transport(body, status=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=body)
    return httpx.MockTransport(handler)


# parse_json_response

def test_parse_json_response_finds_object_in_prose():
    text = 'Sure! Here it is:\n```json\n{"score": 70, "findings": []}\n```'
    assert parse_json_response(text, ("score",)) == {"score": 70, "findings": []}


@pytest.mark.parametrize("text", ["no json here", "{broken", '["a", "b"]', '{"other": 1}', ""])
def test_parse_json_response_rejects_bad_replies(text):
    with pytest.raises(AiMalformedOutputError):
        parse_json_response(text, ("score",))


# Providers

def test_anthropic_provider_request_and_reply():
    seen: list[httpx.Request] = []
    provider = AnthropicProvider(
        api_key="secret",
        transport=json_transport({"content": [{"type": "text", "text": "hello"}]}, seen=seen),
    )
    assert provider.generate("prompt", max_tokens=50) == "hello"

    request = seen[0]
    assert request.headers["x-api-key"] == "secret"
    assert json.loads(request.content)["max_tokens"] == 50


def test_openai_provider_reply():
    provider = OpenAIProvider(
        api_key="k",
        transport=json_transport({"choices": [{"message": {"content": "hi"}}]}),
    )
    assert provider.generate("prompt") == "hi"


def test_google_provider_sends_key_in_query():
    seen: list[httpx.Request] = []
    provider = GoogleProvider(
        api_key="g-key",
        transport=json_transport({"candidates": [{"content": {"parts": [{"text": "yo"}]}}]}, seen=seen),
    )
    assert provider.generate("prompt") == "yo"
    assert seen[0].url.params["key"] == "g-key"


def test_provider_http_error_is_provider_error():
    provider = OpenAIProvider(api_key="k", transport=json_transport({"error": "boom"}, status=500))
    with pytest.raises(AiProviderError, match="HTTP 500"):
        provider.generate("prompt")


def test_provider_timeout_is_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    provider = AnthropicProvider(api_key="k", transport=httpx.MockTransport(handler))
    with pytest.raises(AiTimeoutError):
        provider.generate("prompt")


def test_provider_unexpected_shape_is_malformed():
    provider = AnthropicProvider(api_key="k", transport=json_transport({"content": []}))
    with pytest.raises(AiMalformedOutputError):
        provider.generate("prompt")


def test_provider_without_key_fails():
    with pytest.raises(AiProviderError, match="API key not set"):
        OpenAIProvider(api_key=None).generate("prompt")


def test_get_configured_generator_selection():
    assert get_configured_generator(Settings()) is None
    assert get_configured_generator(Settings(ai_provider="none", openai_api_key="k")) is None

    first = get_configured_generator(Settings(openai_api_key="o", google_api_key="g"))
    assert first.name == "OpenAI"

    chosen = get_configured_generator(Settings(ai_provider="google", anthropic_api_key="a", google_api_key="g"))
    assert chosen.name == "Google"

    custom = get_configured_generator(Settings(anthropic_api_key="a", ai_model="claude-custom", ai_timeout=5))
    assert custom.model == "claude-custom"
    assert custom.timeout == 5


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("AUDIT_AI_PROVIDER", "OpenAI")
    monkeypatch.setenv("OPENAI_API_KEY", " sk-test ")
    monkeypatch.setenv("GEMINI_API_KEY", "gem")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("AUDIT_AI_TIMEOUT", "12.5")
    monkeypatch.setenv("AUDIT_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.ai_provider == "openai"
    assert settings.openai_api_key == "sk-test"
    assert settings.google_api_key == "gem"
    assert settings.ai_timeout == 12.5
    assert settings.log_level == "DEBUG"


# Enhancement tasks

def test_blend_scores_rounds_half_up():
    assert blend_scores(80, 0) == 48
    assert blend_scores(75, 50) == 65
    assert blend_scores(51, 50) == 51  # 50.6


def test_enhance_aeo_blends_and_tags_findings():
    pages = [make_page("/", BARE_HTML)]
    basic = check_aeo_content(pages)
    generator = FakeGenerator({"aeo": aeo_reply(80, [{"type": "warning", "message": "Answers are buried"}])})

    enhanced = enhance_aeo(generator, basic, pages)

    assert enhanced.score == 48
    assert enhanced.findings[: len(basic.findings)] == basic.findings
    ai_finding = enhanced.findings[-1]
    assert ai_finding.message == "Answers are buried"
    assert ai_finding.ai and ai_finding.detail == AI_FINDING_DETAIL
    assert basic.score == 0
    assert not any(f.ai for f in basic.findings)


def test_enhance_aeo_clamps_ai_score():
    pages = [make_page("/", BARE_HTML)]
    enhanced = enhance_aeo(FakeGenerator({"aeo": aeo_reply(150)}), check_aeo_content(pages), pages)
    assert enhanced.score == 60


def test_enhance_aeo_rejects_non_numeric_score():
    pages = [make_page("/", BARE_HTML)]
    generator = FakeGenerator({"aeo": json.dumps({"score": "high"})})
    with pytest.raises(AiMalformedOutputError):
        enhance_aeo(generator, check_aeo_content(pages), pages)


def test_generate_llms_files_requires_both_files():
    pages = [make_page()]
    files = generate_llms_files(FakeGenerator({"llms-txt": llms_reply()}), pages, BASE_URL, "Example")
    assert set(files) == {"llms.txt", "llms-full.txt"}

    partial = FakeGenerator({"llms-txt": json.dumps({"llmsTxt": "# x", "llmsFullTxt": ""})})
    with pytest.raises(AiMalformedOutputError):
        generate_llms_files(partial, pages, BASE_URL, "Example")


def test_generate_json_ld_must_cover_every_page():
    pages = [make_page("/"), make_page("/about")]

    files = generate_json_ld(FakeGenerator({"json-ld": json_ld_reply(["/", "/about"])}), pages, BASE_URL, "Example")
    assert set(files) == {"schema/home.json", "schema/about.json"}
    assert json.loads(files["schema/about.json"])["@type"] == "WebPage"

    with pytest.raises(AiMalformedOutputError, match="/about"):
        generate_json_ld(FakeGenerator({"json-ld": json_ld_reply(["/"])}), pages, BASE_URL, "Example")


def test_generate_json_ld_keys_pages_by_url():
    pages = [
        PageData(url=page_url("/item?id=1"), path="/item", html=BARE_HTML, title="One"),
        PageData(url=page_url("/item?id=2"), path="/item", html=BARE_HTML, title="Two"),
    ]
    generator = FakeGenerator({"json-ld": json_ld_reply(["/item?id=1", "/item?id=2"])})

    files = generate_json_ld(generator, pages, BASE_URL, "Example")

    assert json.loads(files["schema/item.json"])["name"] == "AI /item?id=1"
    assert json.loads(files["schema/item-2.json"])["name"] == "AI /item?id=2"


def test_enhance_report_rejects_short_text():
    assert enhance_report(FakeGenerator({"report": report_reply(800)}), "# Report", {}).startswith("# Enhanced")
    with pytest.raises(AiMalformedOutputError, match="too short"):
        enhance_report(FakeGenerator({"report": report_reply(10)}), "# Report", {})


def test_run_task_turns_any_exception_into_diagnostic():
    def crash(generator):
        raise RuntimeError("kaboom")

    outcome = run_task(STEP_AEO, FakeGenerator({}), crash)

    assert not outcome.success
    assert outcome.value is None
    assert outcome.diagnostic.step == STEP_AEO
    assert outcome.diagnostic.model == "fake-model"
    assert outcome.diagnostic.error == "RuntimeError: kaboom"
    assert outcome.diagnostic.duration_ms >= 0


def test_parallel_enhancements_isolate_failures():
    pages = [make_page("/")]
    generator = FakeGenerator({
        "aeo": AiTimeoutError("timed out"),
        "llms-txt": "not json at all",
        "json-ld": json_ld_reply(["/"]),
    })

    results = run_parallel_enhancements(generator, check_aeo_content(pages), pages, BASE_URL, "Example")

    assert not results.aeo.success
    assert "AiTimeoutError" in results.aeo.diagnostic.error
    assert not results.llms.success
    assert results.json_ld.success
    assert results.any_success
    assert [o.step for o in results.outcomes] == ["aeo", "llms-txt", "json-ld"]
