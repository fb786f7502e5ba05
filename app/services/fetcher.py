import asyncio
import re
import httpx
import logging
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urljoin
from bs4 import BeautifulSoup

from app.config import settings
from app.exceptions import FetchError

logger = logging.getLogger("Page_Fetcher")

BUNDLE_SRC_RE = re.compile(r"/assets/.+\.js$", re.IGNORECASE)


@dataclass(frozen=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    headers: Dict[str, str]
    html: str


def find_bundle_url(html: str, base_url: str) -> Optional[str]:
    """
    First element whose src points at a bundler output script (…/assets/*.js),
    resolved against the page URL.
    """
    if not html:
        return None
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup.find_all(src=True):
        src = tag.get("src", "").strip()
        if BUNDLE_SRC_RE.search(src):
            return urljoin(base_url, src)
    return None


class PageFetcher:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Browser headers to look real
        self.headers = {
            'User-Agent': settings.USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            verify=settings.VERIFY_SSL,
            transport=self._transport,
        )

    async def _get(self, url: str) -> httpx.Response:
        async with self._client(settings.FETCH_TIMEOUT_SECONDS) as client:
            return await client.get(url, headers=self.headers)

    async def fetch_page(self, url: str) -> FetchedPage:
        """
        Fetches the target page. Any status code is returned as-is;
        only transport-level failures raise FetchError.
        FETCH_TIMEOUT_SECONDS bounds the whole exchange, body included.
        """
        logger.info(f"🌐 Fetching page: {url}")
        timeout_message = f"Timed out after {settings.FETCH_TIMEOUT_SECONDS}s"
        try:
            resp = await asyncio.wait_for(self._get(url), settings.FETCH_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as e:
            logger.warning(f"⏱️ Timeout while fetching {url}")
            raise FetchError(url, timeout_message) from e
        except httpx.TimeoutException as e:
            logger.warning(f"⏱️ Timeout while fetching {url}: {e}")
            raise FetchError(url, str(e) or timeout_message) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"🚫 HTTP error for {url}: {type(e).__name__} - {e}")
            raise FetchError(url, str(e) or type(e).__name__) from e

        html = resp.text
        logger.info(f"✅ Fetched {url} ({len(html)} characters, status: {resp.status_code})")
        return FetchedPage(
            url=url,
            final_url=str(resp.url),
            status_code=resp.status_code,
            headers={k.lower(): v for k, v in resp.headers.items()},
            html=html,
        )

    async def _read_bundle(self, url: str, limit: int) -> bytes:
        buf = bytearray()
        async with self._client(settings.BUNDLE_TIMEOUT_SECONDS) as client:
            async with client.stream("GET", url, headers=self.headers) as resp:
                async for chunk in resp.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) >= limit:
                        break
        return bytes(buf[:limit])

    async def fetch_bundle(self, url: str) -> str:
        """
        Reads at most BUNDLE_MAX_BYTES of a script bundle within BUNDLE_TIMEOUT_SECONDS.
        Failures return an empty string: the bundle only deepens the AI heuristics.
        """
        try:
            body = await asyncio.wait_for(
                self._read_bundle(url, settings.BUNDLE_MAX_BYTES), settings.BUNDLE_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            logger.debug(f"Bundle fetch timed out for {url} after {settings.BUNDLE_TIMEOUT_SECONDS}s")
            return ""
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Bundle fetch skipped for {url}: {type(e).__name__} - {e}")
            return ""
        except Exception as e:
            logger.debug(f"Bundle fetch failed for {url}: {type(e).__name__} - {e}")
            return ""

        logger.debug(f"📦 Bundle {url}: {len(body)} bytes")
        return body.decode("utf-8", errors="replace")

    async def fetch_page_bundle(self, page: FetchedPage) -> str:
        bundle_url = find_bundle_url(page.html, page.final_url)
        if not bundle_url:
            return ""
        return await self.fetch_bundle(bundle_url)
