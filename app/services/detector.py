import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from app.config import settings
from app.exceptions import FetchError
from app.models.schemas import DetectionResult, Signal
from app.services.fetcher import PageFetcher
from app.services.fingerprints import LIBRARY, Fingerprint
from app.services.heuristics import extract_ai_signals
from app.services.matcher import PageArtifacts, match_fingerprint
from app.services.scoring import decide_bucket, pick_best_platform, score_signals

logger = logging.getLogger("Detector")

EMPTY_URL_ERROR = "empty_url"


def normalize_url(raw_url: str) -> str:
    url = raw_url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def analyze(
    url: str,
    artifacts: PageArtifacts,
    library: Mapping[str, Fingerprint] = LIBRARY,
) -> DetectionResult:
    """
    Scores an already-fetched page against every fingerprint and the AI heuristics,
    then picks the bucket. Pure: no network access.
    """
    platform_scores: Dict[str, float] = {}
    platform_signals: Dict[str, List[Signal]] = {}
    for name, fingerprint in library.items():
        signals = match_fingerprint(fingerprint, artifacts)
        platform_signals[name] = signals
        platform_scores[name] = score_signals(signals)

    best_platform, best_score = pick_best_platform(platform_scores)

    # Always computed, even when a platform wins
    ai_signals = extract_ai_signals(artifacts)
    ai_score = score_signals(ai_signals)

    bucket, confidence = decide_bucket(True, best_score, ai_score)

    platform = None
    platform_score = 0
    winning_signals: List[Signal] = []
    if bucket == "platform-assisted":
        platform = best_platform
        platform_score = best_score
        winning_signals = platform_signals[best_platform]

    return DetectionResult(
        url=url,
        final_url=artifacts.final_url,
        bucket=bucket,
        bucket_confidence=confidence,
        platform=platform,
        platform_score=platform_score,
        platform_signals=winning_signals,
        all_platform_scores=platform_scores,
        ai_score=ai_score,
        ai_signals=ai_signals,
    )


class Detector:
    def __init__(self, fetcher: Optional[PageFetcher] = None, library: Mapping[str, Fingerprint] = LIBRARY):
        self.fetcher = fetcher or PageFetcher()
        self.library = library

    async def detect(self, raw_url: str) -> DetectionResult:
        url = normalize_url(raw_url)

        try:
            page = await self.fetcher.fetch_page(url)
        except FetchError as e:
            return DetectionResult.failed(raw_url, url, e.message)
        except Exception as e:
            logger.error(f"❌ Unexpected error while fetching {url}: {type(e).__name__} - {e}", exc_info=True)
            return DetectionResult.failed(raw_url, url, str(e) or type(e).__name__)

        bundle = await self.fetcher.fetch_page_bundle(page)
        artifacts = PageArtifacts(html=page.html, headers=page.headers, final_url=page.final_url, bundle=bundle)
        result = analyze(raw_url, artifacts, self.library)

        logger.info(
            f"🔎 {raw_url} -> {result.bucket} ({result.bucket_confidence}) "
            f"platform={result.platform or '-'} platform_score={result.platform_score} ai_score={result.ai_score}"
        )
        return result

    async def detect_many(self, raw_urls: Sequence[str], concurrency: Optional[int] = None) -> List[DetectionResult]:
        """
        Runs detections concurrently, at most `concurrency` at a time.
        Results come back in input order; blank URLs are not fetched.
        """
        semaphore = asyncio.Semaphore(concurrency or settings.BATCH_CONCURRENCY)

        async def run(raw_url: str) -> DetectionResult:
            if not raw_url.strip():
                return DetectionResult.failed("", "", EMPTY_URL_ERROR)
            async with semaphore:
                return await self.detect(raw_url)

        logger.info(f"🚀 Batch detection for {len(raw_urls)} URLs")
        return list(await asyncio.gather(*(run(u) for u in raw_urls)))
