import re
import logging
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple, Tuple

from app.exceptions import FingerprintConfigError

logger = logging.getLogger("Fingerprint_Library")

VALID_CONFIDENCES = ("high", "medium", "low")

HOSTNAME_CATEGORY = "hostname"
HEADER_CATEGORY = "http_header"

# Searched directly against the full HTML text
CONTENT_CATEGORIES = (
    "meta_tag", "html_comment", "data_attribute", "css_class",
    "css_variable", "js_global", "dom_id", "script_content", "font",
)

# Category -> regex extracting the URL attribute of every matching tag
TAG_URL_CATEGORIES = {
    "script_src": r"<script[^>]+src=[\"']([^\"']+)[\"']",
    "link_href": r"<link[^>]+href=[\"']([^\"']+)[\"']",
    "img_src": r"<img[^>]+src=[\"']([^\"']+)[\"']",
}

ALL_CATEGORIES = (HOSTNAME_CATEGORY, HEADER_CATEGORY) + CONTENT_CATEGORIES + tuple(TAG_URL_CATEGORIES)


class PatternEntry(NamedTuple):
    pattern: str
    confidence: str
    description: str
    # Only consulted for http_header entries
    header: str = "server"


class CompiledPattern(NamedTuple):
    regex: re.Pattern
    confidence: str
    description: str
    header: str


Fingerprint = Mapping[str, Tuple[CompiledPattern, ...]]

P = PatternEntry

# Declaration order is the tie-break order when two platforms share the top score.
FINGERPRINTS: Dict[str, Dict[str, Tuple[PatternEntry, ...]]] = {

    "Framer": {
        "hostname": (
            P(r"\.framer\.website$", "high", "Framer subdomain (.framer.website)"),
            P(r"\.framer\.app$", "high", "Framer subdomain (.framer.app)"),
            P(r"\.framer\.ai$", "high", "Framer subdomain (.framer.ai)"),
        ),
        "http_header": (
            P(r"^Framer/", "high", "Framer Server header"),
            P(r"^framer$", "high", "Framer Server header (lowercase)"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Framer", "high", "Framer generator meta tag"),
            P(r"<meta[^>]+content=[\"']Framer[^\"']*[\"'][^>]+name=[\"']generator[\"']", "high", "Framer generator meta tag (reversed)"),
        ),
        "html_comment": (
            P(r"Built with Framer", "high", "Framer build comment"),
            P(r"framer\.com", "medium", "Framer URL in HTML comment"),
        ),
        "data_attribute": (
            P(r"data-framer-component-type", "high", "Framer component attribute"),
            P(r"data-framer-stack-", "high", "Framer stack layout attribute"),
            P(r"data-framer-appear-id", "high", "Framer appear animation attribute"),
            P(r"data-framer-name", "medium", "Framer name attribute"),
        ),
        "css_class": (
            P(r"\bframer-[a-zA-Z0-9]{4,10}\b", "medium", "Framer generated CSS class"),
        ),
        "css_variable": (
            P(r"--framer-font-family", "high", "Framer CSS font variable"),
            P(r"--framer-text-color", "high", "Framer CSS text color variable"),
            P(r"--framer-link-", "high", "Framer CSS link variable"),
        ),
        "dom_id": (
            P(r"id=[\"']__framer-badge-container[\"']", "high", "Framer badge (free tier)"),
        ),
        "script_src": (
            P(r"framerusercontent\.com", "high", "Framer CDN (framerusercontent.com)"),
            P(r"framerstatic\.com", "high", "Framer static CDN"),
            P(r"events\.framer\.com", "high", "Framer analytics endpoint"),
        ),
        "link_href": (
            P(r"framerusercontent\.com", "high", "Framer CDN in stylesheet"),
        ),
    },

    "Webflow": {
        "hostname": (
            P(r"\.webflow\.io$", "high", "Webflow subdomain (.webflow.io)"),
        ),
        "html_comment": (
            P(r"This site was created in Webflow", "high", "Webflow build comment"),
            P(r"webflow\.com", "medium", "Webflow URL in HTML comment"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+content=[\"']Webflow[\"'][^>]+name=[\"']generator[\"']", "high", "Webflow generator meta tag"),
            P(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Webflow[\"']", "high", "Webflow generator meta tag (reversed)"),
        ),
        "data_attribute": (
            P(r"data-wf-domain", "high", "Webflow domain attribute"),
            P(r"data-wf-page", "high", "Webflow page ID attribute"),
            P(r"data-wf-site", "high", "Webflow site ID attribute"),
            P(r"data-wf-experiences", "high", "Webflow experiences attribute"),
            P(r"data-wf--button--variant", "high", "Webflow button component attribute"),
            P(r"data-wf--nav--variant", "high", "Webflow nav component attribute"),
        ),
        "css_class": (
            P(r"\bw-mod-js\b", "high", "Webflow w-mod-js class"),
            P(r"\bw-richtext\b", "high", "Webflow rich text class"),
            P(r"\bw-embed\b", "high", "Webflow embed class"),
            P(r"\bw-dyn-list\b", "high", "Webflow dynamic list class"),
            P(r"\bw-dyn-item\b", "high", "Webflow dynamic item class"),
            P(r"\bw-nav\b", "high", "Webflow nav class"),
            P(r"\bw-container\b", "medium", "Webflow container class"),
        ),
        "css_variable": (
            P(r"--_color---primary--webflow-blue", "high", "Webflow brand CSS variable"),
            P(r"--wst-button-", "high", "Webflow style token button variable"),
        ),
        "js_global": (
            P(r"window\.wf\b", "high", "Webflow JS global (window.wf)"),
            P(r"window\.webflowHost", "high", "Webflow JS host global"),
            P(r"Webflow\.push", "high", "Webflow.push() JS call"),
        ),
        "script_src": (
            P(r"cdn\.prod\.website-files\.com", "high", "Webflow production CDN"),
            P(r"d3e54v103j8qbb\.cloudfront\.net", "high", "Webflow CloudFront CDN"),
        ),
        "link_href": (
            P(r"cdn\.prod\.website-files\.com", "high", "Webflow CDN stylesheet"),
            P(r"\.webflow\.[a-f0-9]+-[a-f0-9]+\.min\.css", "high", "Webflow generated CSS filename"),
        ),
    },

    "Bolt": {
        "hostname": (
            P(r"\.bolt\.new$", "high", "Bolt preview subdomain (.bolt.new)"),
            P(r"\.stackblitz\.io$", "high", "StackBlitz preview (Bolt host)"),
        ),
        "http_header": (
            P(r".", "high", "Bolt server-version header", header="server-version"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+name=[\"']bolt-version[\"']", "high", "Bolt version meta tag"),
        ),
        "html_comment": (
            P(r"bolt\.new", "high", "bolt.new URL in HTML comment"),
            P(r"<!--remix-island-start-->", "medium", "Remix island comment (Bolt uses Remix)"),
        ),
        "css_variable": (
            P(r"--bolt-elements-", "high", "Bolt CSS element variable"),
            P(r"--bolt-ds-", "high", "Bolt design system CSS variable"),
        ),
        "js_global": (
            P(r"window\.__allowDOMMutations", "high", "Bolt JS global (__allowDOMMutations)"),
            P(r"window\.__loadingPrompt", "high", "Bolt JS global (__loadingPrompt)"),
            P(r"\"bolt_theme\"", "medium", "Bolt theme localStorage key"),
        ),
    },

    "v0 (Vercel)": {
        "hostname": (
            P(r"\.v0\.dev$", "high", "v0 subdomain (.v0.dev)"),
            P(r"\.v0\.app$", "high", "v0 subdomain (.v0.app)"),
            P(r"\.vusercontent\.net$", "high", "v0 vusercontent preview subdomain"),
        ),
        "data_attribute": (
            P(r"data-dpl-id=[\"']dpl_[a-zA-Z0-9]+[\"']", "high", "v0/Vercel deployment ID attribute"),
        ),
        "script_src": (
            P(r"/chat-static/_next/static/", "high", "v0 Next.js static bundle path"),
            P(r"blobs\.vusercontent\.net", "high", "v0 blob storage CDN"),
            P(r"generated\.vusercontent\.net", "high", "v0 generated asset CDN"),
        ),
        "link_href": (
            P(r"/chat-static/_next/static/", "high", "v0 Next.js static CSS path"),
            P(r"vusercontent\.net", "high", "v0 CDN in stylesheet"),
        ),
        "css_class": (
            P(r"\bgeist\b", "medium", "Geist font class (Vercel/v0 proprietary)"),
        ),
    },

    "Wix": {
        "hostname": (
            P(r"\.wix\.com$", "high", "Wix subdomain (.wix.com)"),
            P(r"\.wixsite\.com$", "high", "Wix subdomain (.wixsite.com)"),
        ),
        "http_header": (
            P(r"Pepyaka", "high", "Wix Pepyaka server"),
            P(r"^\s*1\s*$", "high", "Wix site confirmation header", header="x-meta-site-is-wix-site"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Wix\.com", "high", "Wix generator meta tag"),
            P(r"<meta[^>]+content=[\"']Wix\.com[^\"']*[\"'][^>]+name=[\"']generator[\"']", "high", "Wix generator meta tag (reversed)"),
        ),
        "dom_id": (
            P(r"id=[\"']SITE_CONTAINER[\"']", "high", "Wix SITE_CONTAINER element"),
            P(r"id=[\"']SITE_HEADER[\"']", "high", "Wix SITE_HEADER element"),
            P(r"id=[\"']SITE_FOOTER[\"']", "high", "Wix SITE_FOOTER element"),
            P(r"id=[\"']WIX_ADS[\"']", "high", "Wix ads element (free tier)"),
            P(r"id=[\"']masterPage[\"']", "high", "Wix masterPage element"),
        ),
        "script_content": (
            P(r"wix-thunderbolt", "high", "Wix Thunderbolt renderer reference"),
            P(r"\"applicationId\"\s*:\s*\"wix-", "high", "Wix application ID in JSON"),
        ),
        "css_variable": (
            P(r"--color_\d+\s*:", "medium", "Wix numbered color CSS variable"),
            P(r"--font_\d+\s*:", "medium", "Wix numbered font CSS variable"),
            P(r"--wix-ads-height", "high", "Wix ads height CSS variable"),
        ),
        "script_src": (
            P(r"static\.parastorage\.com", "high", "Wix parastorage CDN"),
            P(r"static\.wixstatic\.com", "high", "Wix static CDN"),
            P(r"siteassets\.parastorage\.com", "high", "Wix site assets CDN"),
        ),
        "link_href": (
            P(r"static\.parastorage\.com", "high", "Wix parastorage CDN stylesheet"),
            P(r"static\.wixstatic\.com", "high", "Wix static CDN stylesheet"),
        ),
    },

    "Lovable": {
        "hostname": (
            P(r"\.lovable\.app$", "high", "Lovable preview subdomain (.lovable.app)"),
            P(r"\.gptengineer\.app$", "high", "Lovable legacy subdomain (.gptengineer.app)"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Lovable", "high", "Lovable generator meta tag"),
        ),
        "dom_id": (
            P(r"id=[\"']lovable-badge[\"']", "high", "Lovable badge (free tier)"),
        ),
        "html_comment": (
            P(r"[Ll]ovable", "medium", "Lovable mention in HTML comment"),
        ),
        "js_global": (
            P(r"window\.__lovable", "high", "Lovable JS global"),
        ),
        "script_src": (
            P(r"/lovable-uploads/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.[a-z]+", "high", "Lovable UUID uploads asset"),
        ),
        "img_src": (
            P(r"/lovable-uploads/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.[a-z]+", "high", "Lovable UUID uploads image"),
        ),
    },

    "Squarespace": {
        "hostname": (
            P(r"\.squarespace\.com$", "high", "Squarespace subdomain (.squarespace.com)"),
        ),
        "http_header": (
            P(r"Squarespace", "high", "Squarespace server header"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Squarespace", "high", "Squarespace generator meta tag"),
            P(r"<meta[^>]+content=[\"']Squarespace[^\"']*[\"'][^>]+name=[\"']generator[\"']", "high", "Squarespace generator meta tag (reversed)"),
        ),
        "html_comment": (
            P(r"Squarespace", "medium", "Squarespace mention in HTML comment"),
        ),
        "js_global": (
            P(r"window\.SQUARESPACE_ROLLUPS", "high", "Squarespace JS rollups global"),
            P(r"Static\.SQUARESPACE_CONTEXT", "high", "Squarespace context global"),
            P(r"Y\.Squarespace", "high", "Squarespace YUI namespace"),
        ),
        "css_class": (
            P(r"\bsqs-block\b", "high", "Squarespace block CSS class"),
            P(r"\bsqs-layout\b", "high", "Squarespace layout CSS class"),
            P(r"\bsqs-col-wrapper\b", "high", "Squarespace col wrapper CSS class"),
        ),
        "script_src": (
            P(r"static\d*\.squarespace\.com", "high", "Squarespace static CDN"),
            P(r"squarespace\.com/universal/scripts", "high", "Squarespace universal scripts"),
        ),
        "link_href": (
            P(r"static\d*\.squarespace\.com", "high", "Squarespace CDN stylesheet"),
        ),
    },

    "GitHub Pages": {
        "hostname": (
            P(r"\.github\.io$", "high", "GitHub Pages subdomain (.github.io)"),
        ),
        "http_header": (
            P(r"GitHub\.com", "high", "GitHub.com server header"),
        ),
        "html_comment": (
            P(r"[Gg]it[Hh]ub\s*[Cc]opilot|[Cc]opilot\s*[Ww]orkspace", "low", "GitHub Copilot mention in HTML comment"),
        ),
    },

    "Cursor AI": {
        "html_comment": (
            P(r"[Cc]ursor\s*[Aa][Ii]|built\s+with\s+[Cc]ursor", "low", "Cursor AI mention in HTML comment"),
        ),
        "meta_tag": (
            P(r"<meta[^>]+content=[\"'][Cc]ursor\s*[Aa][Ii][\"']", "low", "Cursor AI meta tag"),
        ),
    },
}


def _compile_entry(platform: str, category: str, entry: PatternEntry) -> CompiledPattern:
    if entry.confidence not in VALID_CONFIDENCES:
        raise FingerprintConfigError(platform, category, entry.pattern, f"unknown confidence {entry.confidence!r}")

    flags = re.IGNORECASE
    if category in CONTENT_CATEGORIES:
        flags |= re.DOTALL
    try:
        regex = re.compile(entry.pattern, flags)
    except re.error as e:
        raise FingerprintConfigError(platform, category, entry.pattern, str(e)) from e

    return CompiledPattern(regex, entry.confidence, entry.description, entry.header.lower())


def load_fingerprints(raw: Mapping[str, Mapping[str, Tuple[PatternEntry, ...]]]) -> Mapping[str, Fingerprint]:
    """
    Compiles raw fingerprint data into a read-only library.
    Any malformed entry raises FingerprintConfigError immediately; nothing is skipped.
    """
    library = {}
    for platform, groups in raw.items():
        compiled = {}
        for category, entries in groups.items():
            if category not in ALL_CATEGORIES:
                raise FingerprintConfigError(platform, category, "", "unknown category")
            compiled[category] = tuple(_compile_entry(platform, category, e) for e in entries)
        library[platform] = MappingProxyType(compiled)

    total = sum(len(entries) for groups in library.values() for entries in groups.values())
    logger.debug(f"Loaded {len(library)} platform fingerprints ({total} patterns)")
    return MappingProxyType(library)


LIBRARY = load_fingerprints(FINGERPRINTS)
