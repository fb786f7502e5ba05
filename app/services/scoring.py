from collections import defaultdict
from typing import Iterable, Mapping, Optional, Tuple

from app.models.schemas import Signal

CONFIDENCE_WEIGHTS = {"high": 10, "medium": 5, "low": 2}
UNKNOWN_CONFIDENCE_WEIGHT = 1
CATEGORY_CAP = 15

MIN_PLATFORM_SCORE = 5
MIN_AI_SCORE = 10


def score_signals(signals: Iterable[Signal]) -> float:
    """
    Sums confidence weights per category, caps each category at CATEGORY_CAP,
    then adds the capped subtotals. Used for platforms and AI heuristics alike.
    """
    by_category = defaultdict(int)
    for sig in signals:
        by_category[sig.category] += CONFIDENCE_WEIGHTS.get(sig.confidence, UNKNOWN_CONFIDENCE_WEIGHT)
    return sum(min(total, CATEGORY_CAP) for total in by_category.values())


def confidence_label(score: float, threshold: float) -> str:
    if score >= threshold * 3:
        return "high"
    if score >= threshold * 1.5:
        return "medium"
    if score >= threshold:
        return "low"
    return "none"


def pick_best_platform(scores: Mapping[str, float]) -> Tuple[Optional[str], float]:
    """
    Highest-scoring platform. On a tie the platform seen first wins,
    so the fingerprint declaration order is the tie-break.
    """
    best_name, best_score = None, 0
    for name, score in scores.items():
        if best_name is None or score > best_score:
            best_name, best_score = name, score
    return best_name, best_score


def decide_bucket(fetch_ok: bool, platform_score: float, ai_score: float) -> Tuple[str, str]:
    """Returns (bucket, confidence). Platform wins over AI when both clear their thresholds."""
    if not fetch_ok:
        return "unknown", "none"
    if platform_score >= MIN_PLATFORM_SCORE:
        return "platform-assisted", confidence_label(platform_score, MIN_PLATFORM_SCORE)
    if ai_score >= MIN_AI_SCORE:
        return "ai-assisted", confidence_label(ai_score, MIN_AI_SCORE)
    return "no-ai-signals", "none"
