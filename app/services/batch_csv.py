import csv
import io
import logging
from typing import Dict, List, Sequence, Tuple

from app.exceptions import BatchInputError
from app.models.schemas import DetectionResult

logger = logging.getLogger("Batch_CSV")

URL_COLUMN_CANDIDATES = [
    "url", "urls", "website", "websites",
    "domain", "domains", "link", "links",
    "site", "sites", "href",
]

RESULT_COLUMNS = ["ai_bucket", "ai_bucket_confidence", "ai_platform", "ai_platform_score", "ai_score", "ai_error"]


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Returns (headers, rows). Blank lines are dropped, cells are stripped,
    short rows are padded with empty strings.
    """
    reader = csv.reader(io.StringIO(text.strip()))
    try:
        headers = [h.strip() for h in next(reader)]
    except StopIteration:
        return [], []

    rows = []
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        values = [v.strip() for v in values]
        rows.append({h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)})
    return headers, rows


def find_url_column(headers: Sequence[str], override: str = "") -> str:
    if override:
        for h in headers:
            if h.lower() == override.lower():
                return h
        raise BatchInputError(f"Column '{override}' not found. Available: {', '.join(headers)}", list(headers))

    lower = [h.lower() for h in headers]
    for candidate in URL_COLUMN_CANDIDATES:
        if candidate in lower:
            return headers[lower.index(candidate)]
    raise BatchInputError(
        f"Could not auto-detect URL column. Available: {', '.join(headers)}. "
        f"Use the 'url_column' field to specify it.",
        list(headers),
    )


def result_row(original: Dict[str, str], result: DetectionResult) -> Dict[str, str]:
    row = dict(original)
    row["ai_bucket"] = result.bucket
    row["ai_bucket_confidence"] = result.bucket_confidence
    row["ai_platform"] = result.platform or ""
    row["ai_platform_score"] = f"{result.platform_score:.1f}"
    row["ai_score"] = f"{result.ai_score:.1f}"
    row["ai_error"] = result.error or ""
    return row


def render_results_csv(headers: Sequence[str], rows: Sequence[Dict[str, str]], results: Sequence[DetectionResult]) -> str:
    """Original columns first, then the result columns not already present."""
    fieldnames = list(headers) + [c for c in RESULT_COLUMNS if c not in headers]
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=fieldnames, lineterminator="\r\n", extrasaction="ignore")
    writer.writeheader()
    for original, result in zip(rows, results):
        writer.writerow(result_row(original, result))
    logger.debug(f"Rendered {len(results)} result rows")
    return output.getvalue()
