"""End-to-end detector tests over canned pages (no network)."""

import asyncio

import httpx
import pytest

from app.services.detector import EMPTY_URL_ERROR, Detector, analyze, normalize_url
from app.services.fetcher import PageFetcher
from app.services.fingerprints import FINGERPRINTS
from tests._helpers import StubFetcher, make_artifacts, make_page

WEBFLOW_HTML = '<html><head><meta name="generator" content="Webflow"></head><body></body></html>'

AI_SPA_HTML = (
    '<html><head>'
    '<link href="https://fonts.googleapis.com/css2?family=Inter" rel="stylesheet">'
    '<script type="module" src="/assets/index-Bq8xZ1aa.js"></script>'
    '</head><body><div id="root"></div>'
    '<a href="https://example.com">Docs</a>'
    '</body></html>'
)


class AlwaysFailingFetcher(PageFetcher):
    async def fetch_page(self, url):
        raise RuntimeError("socket exploded")


class TestNormalizeUrl:
    @pytest.mark.parametrize("raw,expected", [
        ("example.com", "https://example.com"),
        ("  example.com/path ", "https://example.com/path"),
        ("http://example.com", "http://example.com"),
        ("https://example.com", "https://example.com"),
    ])
    def test_scheme(self, raw, expected):
        assert normalize_url(raw) == expected


class TestAnalyze:
    def test_webflow_scenario(self):
        art = make_artifacts(html=WEBFLOW_HTML, url="https://studio.webflow.io/")
        result = analyze("studio.webflow.io", art)
        assert result.bucket == "platform-assisted"
        assert result.platform == "Webflow"
        assert result.bucket_confidence == "high"
        assert result.platform_score == 20
        assert {s.category for s in result.platform_signals} == {"hostname", "meta_tag"}

    def test_plain_com_scenario(self):
        result = analyze("https://acme-plumbing.com/", make_artifacts())
        assert result.bucket == "no-ai-signals"
        assert result.bucket_confidence == "none"
        assert result.platform is None
        assert result.platform_signals == ()
        assert result.ai_signals == ()
        assert result.error is None

    def test_score_table_covers_every_platform_in_order(self):
        result = analyze("https://acme-plumbing.com/", make_artifacts())
        assert list(result.all_platform_scores) == list(FINGERPRINTS)
        assert all(score == 0 for score in result.all_platform_scores.values())

    def test_vercel_app_scenario(self):
        result = analyze("https://portfolio.vercel.app/", make_artifacts(url="https://portfolio.vercel.app/"))
        assert [(s.category, s.confidence) for s in result.ai_signals] == [("prototype_hosting", "medium")]
        assert result.ai_score == 5
        assert result.bucket == "no-ai-signals"

    def test_signal_lists_are_immutable(self):
        result = analyze("https://portfolio.vercel.app/", make_artifacts(url="https://portfolio.vercel.app/"))
        assert isinstance(result.ai_signals, tuple)
        with pytest.raises(AttributeError):
            result.ai_signals.append(result.ai_signals[0])

    def test_platform_preferred_over_ai(self):
        html = AI_SPA_HTML.replace("<head>", '<head><meta name="generator" content="Webflow">')
        bundle = '"@radix-ui/react-slot" lucide-react'
        art = make_artifacts(html=html, url="https://x.netlify.app/", bundle=bundle)
        result = analyze("https://x.netlify.app/", art)
        assert result.ai_score >= 10
        assert result.bucket == "platform-assisted"
        assert result.platform == "Webflow"
        # AI signals are still reported
        assert result.ai_signals

    def test_ai_assisted(self):
        bundle = '"@radix-ui/react-slot" lucide-react'
        art = make_artifacts(html=AI_SPA_HTML, url="https://x.netlify.app/", bundle=bundle)
        result = analyze("https://x.netlify.app/", art)
        assert result.bucket == "ai-assisted"
        assert result.platform is None
        assert result.platform_score == 0
        assert result.platform_signals == ()
        assert result.all_platform_scores

    def test_sub_threshold_platform_fields_empty(self):
        # A lone low Copilot mention scores 2 for GitHub Pages, under the threshold of 5
        art = make_artifacts(html="<!-- generated with GitHub Copilot -->")
        result = analyze("https://acme-plumbing.com/", art)
        assert result.all_platform_scores["GitHub Pages"] == 2
        assert result.platform is None
        assert result.platform_signals == ()

    def test_tie_break_first_declared(self):
        # Framer and Webflow each reach 10 from a single high signal
        html = '<div id="__framer-badge-container"></div><div class="w-richtext"></div>'
        result = analyze("https://acme-plumbing.com/", make_artifacts(html=html))
        assert result.all_platform_scores["Framer"] == result.all_platform_scores["Webflow"] == 10
        assert result.platform == "Framer"


class TestDetect:
    async def test_fetch_failure_short_circuits(self):
        result = await Detector(fetcher=StubFetcher({})).detect("nowhere.invalid")
        assert result.bucket == "unknown"
        assert result.bucket_confidence == "none"
        assert result.error == "Name or service not known"
        assert result.url == "nowhere.invalid"
        assert result.final_url == "https://nowhere.invalid"
        assert result.platform is None
        assert result.platform_score == 0
        assert result.ai_score == 0
        assert result.platform_signals == () and result.ai_signals == ()
        assert result.all_platform_scores == {}

    async def test_unexpected_fetcher_exception(self):
        result = await Detector(fetcher=AlwaysFailingFetcher()).detect("https://a.example")
        assert result.bucket == "unknown"
        assert result.error == "socket exploded"
        assert result.all_platform_scores == {}

    async def test_bare_host_is_fetched_over_https(self):
        fetcher = StubFetcher({"https://studio.webflow.io": make_page("https://studio.webflow.io", WEBFLOW_HTML)})
        result = await Detector(fetcher=fetcher).detect("studio.webflow.io")
        assert fetcher.requested == ["https://studio.webflow.io"]
        assert result.url == "studio.webflow.io"
        assert result.platform == "Webflow"

    async def test_redirect_target_drives_hostname(self):
        page = make_page("https://brand.com", final_url="https://brand.lovable.app/")
        result = await Detector(fetcher=StubFetcher({"https://brand.com": page})).detect("brand.com")
        assert result.final_url == "https://brand.lovable.app/"
        assert result.platform == "Lovable"

    async def test_bundle_feeds_ai_only(self):
        url = "https://spa.example"
        bundle = (
            "rounded-lg border bg-card text-card-foreground shadow "
            "fixed inset-0 z-50 bg-black/80 @radix-ui/react-dialog window.__lovable"
        )
        fetcher = StubFetcher({url: make_page(url, AI_SPA_HTML)}, bundles={url: bundle})
        result = await Detector(fetcher=fetcher).detect(url)
        assert any(s.category == "shadcn_ui" and s.confidence == "high" for s in result.ai_signals)
        assert result.all_platform_scores["Lovable"] == 0
        assert result.bucket == "ai-assisted"


class TestDetectWithRealFetcher:
    """Runs the real PageFetcher over a mock transport so bundle handling is exercised."""

    async def test_bundle_failure_degrades_to_html_only(self):
        html = WEBFLOW_HTML.replace("</head>", '<script src="/assets/index-Ab12Cd34.js"></script></head>')

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/assets/"):
                raise RuntimeError("bundle stream corrupted")
            return httpx.Response(200, text=html)

        result = await Detector(fetcher=PageFetcher(transport=httpx.MockTransport(handler))).detect("site.example")
        assert result.error is None
        assert result.bucket == "platform-assisted"
        assert result.platform == "Webflow"

    async def test_bad_bundle_host_does_not_sink_the_batch(self):
        html = '<html><head><script src="https://xn--a.com/assets/index-Ab12Cd34.js"></script></head></html>'
        fetcher = PageFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(200, text=html)))
        results = await Detector(fetcher=fetcher).detect_many(["site.example", "other.example"])
        assert [r.url for r in results] == ["site.example", "other.example"]
        assert all(r.error is None for r in results)
        assert all(r.bucket != "unknown" for r in results)


class TestDetectMany:
    async def test_results_in_input_order(self):
        pages = {
            "https://a.webflow.io": make_page("https://a.webflow.io", WEBFLOW_HTML),
            "https://plain.com": make_page("https://plain.com"),
        }
        results = await Detector(fetcher=StubFetcher(pages)).detect_many(["a.webflow.io", "down.example", "plain.com"])
        assert [r.bucket for r in results] == ["platform-assisted", "unknown", "no-ai-signals"]

    async def test_blank_urls_not_fetched(self):
        fetcher = StubFetcher({})
        results = await Detector(fetcher=fetcher).detect_many(["", "   "])
        assert [r.error for r in results] == [EMPTY_URL_ERROR, EMPTY_URL_ERROR]
        assert fetcher.requested == []

    async def test_concurrency_is_bounded(self):
        active = 0
        peak = 0

        class SlowFetcher(StubFetcher):
            async def fetch_page(self, url):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return make_page(url)

        results = await Detector(fetcher=SlowFetcher({})).detect_many([f"s{i}.com" for i in range(8)], concurrency=3)
        assert len(results) == 8
        assert peak <= 3
