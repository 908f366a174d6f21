import hashlib
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
import trafilatura

from enrichment_operations.enrichment_exceptions import (
    AIProviderError,
    ContentExtractionError,
    ScreenshotCaptureError,
)
from enrichment_operations.providers import (
    GeminiAIProvider,
    HttpContentExtractor,
    HttpScreenshotProvider,
    ScreenshotStore,
)
from enrichment_operations.providers.gemini_ai import normalize_category, parse_summary_response
from tab_ops_exceptions import (
    ConfigurationError,
    InvalidUrlError,
    ProviderError,
    ProviderTimeoutError,
    QuotaExceededError,
)

ARTICLE = "Stripe is a suite of APIs powering online payment processing for businesses of all sizes."


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def fake_trafilatura(monkeypatch):
    monkeypatch.setattr(trafilatura, "extract", lambda html, **kwargs: ARTICLE)
    monkeypatch.setattr(
        trafilatura, "extract_metadata", lambda html, **kwargs: SimpleNamespace(title="Stripe Docs")
    )


@pytest.mark.asyncio
async def test_content_extraction(fake_trafilatura):
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, html="<html><body>...</body></html>")

    extractor = HttpContentExtractor(client=mock_client(handler))

    page = await extractor.extract_page_content("https://stripe.com/docs")

    assert requested == ["https://stripe.com/docs"]
    assert page.title == "Stripe Docs"
    assert page.content == ARTICLE
    assert page.has_content


@pytest.mark.asyncio
async def test_thin_page_yields_no_content(monkeypatch, fake_trafilatura):
    monkeypatch.setattr(trafilatura, "extract", lambda html, **kwargs: "Too short")
    extractor = HttpContentExtractor(client=mock_client(lambda request: httpx.Response(200, html="<p>x</p>")))

    page = await extractor.extract_page_content("https://example.com")

    assert page.title == "Stripe Docs"
    assert not page.has_content


@pytest.mark.asyncio
async def test_non_html_response_is_skipped(fake_trafilatura):
    extractor = HttpContentExtractor(
        client=mock_client(lambda request: httpx.Response(200, json={"items": []}))
    )

    page = await extractor.extract_page_content("https://api.example.com/items")

    assert not page.has_content
    assert page.title is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status, error_type", [
    (429, QuotaExceededError),
    (404, ProviderError),
    (503, ProviderError),
])
async def test_http_errors_map_to_provider_errors(status, error_type):
    extractor = HttpContentExtractor(client=mock_client(lambda request: httpx.Response(status)))

    with pytest.raises(error_type) as exc_info:
        await extractor.extract_page_content("https://example.com")

    assert exc_info.value.status_code == status
    assert exc_info.value.transient == (status >= 500)


@pytest.mark.asyncio
async def test_transport_failures_are_classified():
    def timeout(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    def unresolved(request):
        raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

    def refused(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(ProviderTimeoutError):
        await HttpContentExtractor(client=mock_client(timeout)).extract_page_content("https://slow.example.com")
    with pytest.raises(InvalidUrlError):
        await HttpContentExtractor(client=mock_client(unresolved)).extract_page_content("https://nope.invalid")
    with pytest.raises(ContentExtractionError):
        await HttpContentExtractor(client=mock_client(refused)).extract_page_content("https://example.com")


@pytest.mark.asyncio
async def test_non_http_url_is_rejected_without_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(InvalidUrlError):
        await HttpContentExtractor(client=mock_client(handler)).extract_page_content("ftp://files.example.com")


class RecordingStore(ScreenshotStore):
    def __init__(self):
        self.saved = {}

    async def save(self, key, data_url):
        self.saved[key] = data_url
        return f"https://cdn.example.com/{key}.png"


@pytest.mark.asyncio
async def test_screenshots_are_stored_and_mapped():
    def handler(request):
        assert request.method == "POST"
        return httpx.Response(200, json={
            "thumbnail": "data:image/png;base64,AAA",
            "fullHeight": "data:image/png;base64,BBB",
        })

    store = RecordingStore()
    provider = HttpScreenshotProvider("https://shots.example.com/capture", store=store,
                                      client=mock_client(handler))

    shots = await provider.capture_screenshots("https://stripe.com")

    key = hashlib.sha1(b"https://stripe.com").hexdigest()
    assert shots.thumbnail == f"https://cdn.example.com/{key}-thumbnail.png"
    assert shots.preview == shots.thumbnail
    assert shots.full_height == f"https://cdn.example.com/{key}-full.png"
    assert store.saved[f"{key}-full"] == "data:image/png;base64,BBB"


@pytest.mark.asyncio
async def test_screenshot_data_urls_kept_without_store():
    provider = HttpScreenshotProvider(
        "https://shots.example.com/capture",
        client=mock_client(lambda request: httpx.Response(200, json={"thumbnail": "data:image/png;base64,AAA"})),
    )

    shots = await provider.capture_screenshots("https://stripe.com")

    assert shots.thumbnail == "data:image/png;base64,AAA"
    assert shots.full_height is None


@pytest.mark.asyncio
async def test_screenshot_service_errors():
    invalid = HttpScreenshotProvider(
        "https://shots.example.com/capture",
        client=mock_client(lambda request: httpx.Response(400, text="Invalid URL supplied")),
    )
    empty = HttpScreenshotProvider(
        "https://shots.example.com/capture",
        client=mock_client(lambda request: httpx.Response(200, json={})),
    )

    with pytest.raises(InvalidUrlError):
        await invalid.capture_screenshots("notaurl")
    with pytest.raises(ScreenshotCaptureError):
        await empty.capture_screenshots("https://stripe.com")


def test_screenshot_provider_requires_service_url():
    with pytest.raises(ConfigurationError):
        HttpScreenshotProvider(None)


def test_parse_summary_response_handles_fences_and_tags():
    result = parse_summary_response(
        '```json\n{"summary": "Payments docs", "tags": ["Payments", "API", "payments", "a", "b", "c"]}\n```'
    )

    assert result.summary == "Payments docs"
    assert result.tags == ["payments", "api", "a", "b"]


@pytest.mark.parametrize("text", ["not json", '{"tags": ["x"]}', "[]"])
def test_parse_summary_response_rejects_bad_answers(text):
    with pytest.raises(AIProviderError):
        parse_summary_response(text)


@pytest.mark.parametrize("answer, expected", [
    ("Finance", "finance"),
    ("technology.", "technology"),
    ("This page is about travel plans", "travel"),
    ("gardening", "other"),
])
def test_normalize_category(answer, expected):
    assert normalize_category(answer) == expected


@pytest.mark.asyncio
async def test_gemini_provider_summarize_and_categorize():
    model = AsyncMock()
    model.generate_content_async.side_effect = [
        SimpleNamespace(text='{"summary": "Online payments platform", "tags": ["payments"]}'),
        SimpleNamespace(text="finance"),
    ]
    provider = GeminiAIProvider(model=model, max_content_length=10)

    summary = await provider.summarize("https://stripe.com", "x" * 50)
    category = await provider.categorize("https://stripe.com", "x" * 50)

    assert summary.summary == "Online payments platform"
    assert summary.tags == ["payments"]
    assert category == "finance"
    prompt = model.generate_content_async.call_args_list[0].args[0]
    assert "x" * 10 in prompt and "x" * 11 not in prompt


@pytest.mark.asyncio
async def test_gemini_provider_error_mapping():
    model = AsyncMock()
    model.generate_content_async.side_effect = RuntimeError("429 Resource has been exhausted (e.g. check quota)")
    with pytest.raises(QuotaExceededError):
        await GeminiAIProvider(model=model).categorize("https://stripe.com", "content")

    model.generate_content_async.side_effect = None
    model.generate_content_async.return_value = SimpleNamespace(text="")
    with pytest.raises(AIProviderError):
        await GeminiAIProvider(model=model).categorize("https://stripe.com", "content")


def test_gemini_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        GeminiAIProvider()
