import re
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence
from urllib.parse import urlparse

from app.models.schemas import Signal
from app.services.fingerprints import (
    CONTENT_CATEGORIES, HEADER_CATEGORY, HOSTNAME_CATEGORY, TAG_URL_CATEGORIES,
    CompiledPattern, Fingerprint,
)

logger = logging.getLogger("Pattern_Matcher")

HEADER_VALUE_MAX_LEN = 60
CDN_URL_CATEGORY = "cdn_url"

_TAG_URL_RE = {category: re.compile(pattern, re.IGNORECASE) for category, pattern in TAG_URL_CATEGORIES.items()}


def extract_hostname(url: str) -> str:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return (hostname or url).lower()


@dataclass(frozen=True)
class PageArtifacts:
    """Everything fetched for one page. Header keys are lower-cased."""
    html: str
    headers: Dict[str, str]
    final_url: str
    bundle: str = ""
    hostname: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "hostname", extract_hostname(self.final_url))
        object.__setattr__(self, "headers", {k.lower(): v for k, v in self.headers.items()})

    @property
    def full_source(self) -> str:
        return self.html + "\n" + self.bundle


def _match_hostname(entries: Sequence[CompiledPattern], hostname: str) -> List[Signal]:
    return [
        Signal(category=HOSTNAME_CATEGORY, confidence=e.confidence, description=e.description, matched_value=hostname)
        for e in entries
        if e.regex.search(hostname)
    ]


def _match_headers(entries: Sequence[CompiledPattern], headers: Dict[str, str]) -> List[Signal]:
    signals = []
    for e in entries:
        value = headers.get(e.header, "")
        if e.regex.search(value):
            shown = value[:HEADER_VALUE_MAX_LEN]
            signals.append(Signal(
                category=HEADER_CATEGORY,
                confidence=e.confidence,
                description=f"{e.description} [{e.header}: {shown}]",
                matched_value=shown,
            ))
    return signals


def _match_content(entries: Sequence[CompiledPattern], html: str, category: str) -> List[Signal]:
    signals = []
    for e in entries:
        m = e.regex.search(html)
        if m:
            signals.append(Signal(category=category, confidence=e.confidence, description=e.description, matched_value=m.group(0)))
    return signals


def _match_tag_urls(entries: Sequence[CompiledPattern], html: str, category: str) -> List[Signal]:
    signals = []
    for tag in _TAG_URL_RE[category].finditer(html):
        src = tag.group(1)
        for e in entries:
            if e.regex.search(src):
                signals.append(Signal(category=CDN_URL_CATEGORY, confidence=e.confidence, description=e.description, matched_value=src))
                break
    return signals


def match_fingerprint(fingerprint: Fingerprint, artifacts: PageArtifacts) -> List[Signal]:
    """
    Applies every pattern group of one fingerprint to the fetched page.
    Only the page itself is consulted; the adjunct bundle never feeds platform scores.
    """
    signals = []
    if HOSTNAME_CATEGORY in fingerprint:
        signals.extend(_match_hostname(fingerprint[HOSTNAME_CATEGORY], artifacts.hostname))
    if HEADER_CATEGORY in fingerprint:
        signals.extend(_match_headers(fingerprint[HEADER_CATEGORY], artifacts.headers))
    for category in CONTENT_CATEGORIES:
        if category in fingerprint:
            signals.extend(_match_content(fingerprint[category], artifacts.html, category))
    for category in TAG_URL_CATEGORIES:
        if category in fingerprint:
            signals.extend(_match_tag_urls(fingerprint[category], artifacts.html, category))
    return signals
