"""
AI-assistant heuristics.

Each detector below looks at one stylistic habit of AI coding tools and returns
zero or more signals. They are independent of each other (except that the hosting
header check defers to the prototype-hosting check) and run on every fetched page,
whatever bucket eventually wins.
"""
import re
import logging
from typing import List

from app.models.schemas import Signal
from app.services.matcher import PageArtifacts

logger = logging.getLogger("AI_Heuristics")

# Tutorial-style comments that explain obvious code
OVER_COMMENTER_PATTERNS = [
    re.compile(r"//\s*(This function|Here we|Loop through|Initialize the|Check if|This will|We need to|Now we|First we|Get the|Set the|Add the|Create the|Update the|Handle the|This is (a|the)|This component|This page|This renders|The following)", re.I),
    re.compile(r"/\*\s*(This function|Initialize|Loop|Handle|Create|Update|Get|Set|Add)\b", re.I),
    re.compile(r"<!--\s*(This section|This is the|Navigation|Header section|Footer section|Main content|Hero section|This div|Wrapper for|Container for)", re.I),
]
OVER_COMMENTER_MANY = 5
OVER_COMMENTER_SOME = 2

# Class combos emitted verbatim by shadcn/ui components
SHADCN_PATTERNS = [
    re.compile(r"rounded-lg border bg-card text-card-foreground shadow"),
    re.compile(r"inline-flex items-center justify-center (gap-2 )?whitespace-nowrap rounded-md text-sm font-medium"),
    re.compile(r"inline-flex items-center rounded-full border px-2\.5 py-0\.5 text-xs font-semibold"),
    re.compile(r"flex h-(?:9|10) w-full rounded-md border border-input bg-background px-3 py-[12]"),
    re.compile(r"fixed inset-0 z-50 bg-black/80"),
    re.compile(r"fixed inset-y-0 z-50 flex (h-full )?flex-col"),
    re.compile(r"function cn\([^)]*\)\s*\{[\s\S]{0,100}clsx|twMerge"),
    re.compile(r"@radix-ui/"),
]

TAILWIND_PATTERNS = [
    re.compile(r"class(?:Name)?=\"[^\"]*(?:flex|grid)[^\"]*(?:items-center|justify-between)[^\"]*(?:gap-|space-)[^\"]*\""),
    re.compile(r"class(?:Name)?=\"[^\"]*(?:sm:|md:|lg:|xl:|dark:){3,}[^\"]*\""),
    re.compile(r"(?:bg|text|border)-(?:slate|gray|zinc|neutral|stone|blue|indigo|violet|purple)-(?:50|100|200|300|400|500|600|700|800|900|950)"),
]
TAILWIND_MIN_FAMILIES = 2

VITE_PATTERNS = [
    re.compile(r"/assets/index-[A-Za-z0-9_-]{6,12}\.js"),
    re.compile(r"/assets/index-[A-Za-z0-9_-]{6,12}\.css"),
]

SPA_ROOT_PATTERNS = [
    re.compile(r"<div id=\"root\">\s*</div>"),
    re.compile(r"<div id=\"app\">\s*</div>"),
]

LUCIDE_PATTERNS = [
    re.compile(r"lucide[-_]react", re.I),
    re.compile(r"lucide", re.I),
    re.compile(r"M\s*12\s+2[Cc]\s*6\.477\s+2"),
    re.compile(r"M\s*3\s+12[Hh]\s*21"),
]

INTER_LINK_PATTERN = re.compile(r"fonts\.googleapis\.com[^\"']*[Ii]nter")
INTER_SOURCE_PATTERNS = [
    re.compile(r"font-family:[^;'\"]*['\"]Inter['\"]"),
    re.compile(r"['\"]Inter['\"],"),
]

PLACEHOLDER_LINK_PATTERNS = [
    re.compile(r"href=[\"']https?://(?:www\.)?example\.com[\"']", re.I),
    re.compile(r"href=[\"']https?://(?:www\.)?yourdomain\.com[\"']", re.I),
    re.compile(r"href=[\"']https?://(?:www\.)?placeholder\.com[\"']", re.I),
    re.compile(r"action=[\"']/api/your[-_]endpoint[\"']", re.I),
    re.compile(r"[\"']https?://api\.example\.com/", re.I),
    re.compile(r"href=[\"']mailto:you@example\.com[\"']", re.I),
    re.compile(r"href=[\"']mailto:email@yourdomain\.com[\"']", re.I),
    re.compile(r"href=[\"']mailto:info@yourcompany\.com[\"']", re.I),
]
PLACEHOLDER_MANY = 3

GENERIC_NAMING_PATTERNS = [
    re.compile(r"class(?:Name)?=\"[^\"]*\b(?:container|wrapper|section|block|div|col|row|item|card|box|panel|element|component)-\d+\b", re.I),
    re.compile(r"id=\"[^\"]*\b(?:container|wrapper|section|block|div)-\d+\b", re.I),
    re.compile(r"\bdata-(?:block|wrapper|element|component)=\"\d*\"", re.I),
]
GENERIC_NAMING_MANY = 4
GENERIC_NAMING_SOME = 2

# Zero-config hosts whose default subdomains suggest a prototype deploy
PROTOTYPE_HOST_SUFFIXES = (
    ".vercel.app", ".netlify.app", ".pages.dev", ".onrender.com", ".fly.dev",
    ".railway.app", ".up.railway.app", ".glitch.me", ".stackblitz.io", ".codesandbox.io",
)

# Provider -> headers whose presence means the page is served by it
HOSTING_HEADERS = (
    ("Vercel", ("x-vercel-id", "x-vercel-cache")),
    ("Netlify", ("x-nf-request-id", "x-netlify")),
)

_AI_BUILDERS = r"(?:Hostinger\s*AI|AI\s*Website|Durable\.co|10Web|Jimdo\s*AI|GoDaddy\s*AI|Wix\s*ADI|Zyro)"
AI_GENERATOR_META_PATTERNS = [
    re.compile(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"'][^\"']*" + _AI_BUILDERS + r"[^\"']*[\"']", re.I),
    re.compile(r"<meta[^>]+content=[\"'][^\"']*" + _AI_BUILDERS + r"[^\"']*[\"'][^>]+name=[\"']generator[\"']", re.I),
]


def _count_occurrences(patterns, text: str) -> int:
    return sum(sum(1 for _ in p.finditer(text)) for p in patterns)


def _count_distinct(patterns, text: str) -> int:
    return sum(1 for p in patterns if p.search(text))


def detect_over_commenting(artifacts: PageArtifacts) -> List[Signal]:
    hits = _count_occurrences(OVER_COMMENTER_PATTERNS, artifacts.full_source)
    if hits >= OVER_COMMENTER_MANY:
        return [Signal(
            category="over_commenter", confidence="high",
            description=f"Tutorial-style comments detected ({hits} matches): AI models over-explain trivial code",
            matched_value=str(hits),
        )]
    if hits >= OVER_COMMENTER_SOME:
        return [Signal(
            category="over_commenter", confidence="medium",
            description=f"Some tutorial-style comments detected ({hits} matches)",
            matched_value=str(hits),
        )]
    return []


def detect_shadcn(artifacts: PageArtifacts) -> List[Signal]:
    hits = _count_distinct(SHADCN_PATTERNS, artifacts.full_source)
    if hits >= 3:
        return [Signal(
            category="shadcn_ui", confidence="high",
            description=f"shadcn/ui component signatures detected ({hits} patterns): AI coding tools default to shadcn",
            matched_value=str(hits),
        )]
    if hits >= 1:
        return [Signal(
            category="shadcn_ui", confidence="medium",
            description=f"shadcn/ui component signatures detected ({hits} patterns)",
            matched_value=str(hits),
        )]
    return []


def detect_tailwind(artifacts: PageArtifacts) -> List[Signal]:
    hits = _count_distinct(TAILWIND_PATTERNS, artifacts.full_source)
    if hits < TAILWIND_MIN_FAMILIES:
        return []
    return [Signal(
        category="tailwind_stack", confidence="medium",
        description="Tailwind CSS utility pattern detected: common AI default stack",
        matched_value=str(hits),
    )]


def detect_vite_build(artifacts: PageArtifacts) -> List[Signal]:
    if not any(p.search(artifacts.html) for p in VITE_PATTERNS):
        return []
    if any(p.search(artifacts.html) for p in SPA_ROOT_PATTERNS):
        return [Signal(
            category="vite_build", confidence="medium",
            description="Vite build artifacts + React SPA root: AI tools default to Vite + React",
            matched_value="vite",
        )]
    return [Signal(category="vite_build", confidence="low", description="Vite build artifacts detected", matched_value="vite")]


def detect_lucide(artifacts: PageArtifacts) -> List[Signal]:
    if not any(p.search(artifacts.full_source) for p in LUCIDE_PATTERNS):
        return []
    return [Signal(
        category="lucide_icons", confidence="medium",
        description="Lucide icon library detected: heavily favoured by AI coding tools",
        matched_value="lucide",
    )]


def detect_inter_font(artifacts: PageArtifacts) -> List[Signal]:
    found = INTER_LINK_PATTERN.search(artifacts.html) or any(p.search(artifacts.full_source) for p in INTER_SOURCE_PATTERNS)
    if not found:
        return []
    return [Signal(
        category="inter_font", confidence="low",
        description="Inter font detected: AI tools almost universally default to Inter",
        matched_value="Inter",
    )]


def detect_placeholder_links(artifacts: PageArtifacts) -> List[Signal]:
    hits = _count_occurrences(PLACEHOLDER_LINK_PATTERNS, artifacts.html)
    if hits >= PLACEHOLDER_MANY:
        return [Signal(
            category="placeholder_links", confidence="high",
            description=f"Placeholder/hallucinated links detected ({hits}): e.g. example.com, yourdomain.com, fake API endpoints",
            matched_value=str(hits),
        )]
    if hits >= 1:
        return [Signal(
            category="placeholder_links", confidence="medium",
            description=f"Placeholder link detected ({hits}): e.g. example.com or yourdomain.com",
            matched_value=str(hits),
        )]
    return []


def detect_generic_naming(artifacts: PageArtifacts) -> List[Signal]:
    hits = _count_occurrences(GENERIC_NAMING_PATTERNS, artifacts.html)
    if hits >= GENERIC_NAMING_MANY:
        return [Signal(
            category="generic_naming", confidence="medium",
            description=f"Generic numbered class/ID names detected ({hits}): e.g. .container-1, .wrapper-2, .section-3",
            matched_value=str(hits),
        )]
    if hits >= GENERIC_NAMING_SOME:
        return [Signal(
            category="generic_naming", confidence="low",
            description=f"Some generic numbered class names detected ({hits})",
            matched_value=str(hits),
        )]
    return []


def is_prototype_host(hostname: str) -> bool:
    return hostname.lower().endswith(PROTOTYPE_HOST_SUFFIXES)


def detect_prototype_hosting(artifacts: PageArtifacts) -> List[Signal]:
    if not is_prototype_host(artifacts.hostname):
        return []
    return [Signal(
        category="prototype_hosting", confidence="medium",
        description=f"Hosted on a prototype/AI-default platform subdomain ({artifacts.hostname})",
        matched_value=artifacts.hostname,
    )]


def detect_hosting_headers(artifacts: PageArtifacts) -> List[Signal]:
    # Same inference as the prototype subdomain; count it once
    if is_prototype_host(artifacts.hostname):
        return []
    signals = []
    for provider, header_names in HOSTING_HEADERS:
        if any(artifacts.headers.get(h) for h in header_names):
            signals.append(Signal(
                category="hosting_platform", confidence="low",
                description=f"Hosted on {provider} (common AI-assisted site host)",
                matched_value=provider.lower(),
            ))
    return signals


def detect_ai_generator_meta(artifacts: PageArtifacts) -> List[Signal]:
    for pattern in AI_GENERATOR_META_PATTERNS:
        m = pattern.search(artifacts.html)
        if m:
            return [Signal(
                category="ai_generator_meta", confidence="high",
                description="AI website builder generator meta tag detected",
                matched_value=m.group(0),
            )]
    return []


DETECTORS = (
    detect_over_commenting,
    detect_shadcn,
    detect_tailwind,
    detect_vite_build,
    detect_lucide,
    detect_inter_font,
    detect_placeholder_links,
    detect_generic_naming,
    detect_prototype_hosting,
    detect_hosting_headers,
    detect_ai_generator_meta,
)


def extract_ai_signals(artifacts: PageArtifacts) -> List[Signal]:
    signals = []
    for detector in DETECTORS:
        found = detector(artifacts)
        if found:
            logger.debug(f"{detector.__name__}: {[s.confidence for s in found]}")
        signals.extend(found)
    return signals
