from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Dict, Literal, Tuple

MATCHED_VALUE_MAX_LEN = 120

Confidence = Literal["high", "medium", "low"]
BucketConfidence = Literal["high", "medium", "low", "none"]
Bucket = Literal["platform-assisted", "ai-assisted", "no-ai-signals", "unknown"]


class Signal(BaseModel):
    """One observation that fired during matching."""
    model_config = ConfigDict(frozen=True)

    category: str
    confidence: Confidence
    description: str
    matched_value: str = ""

    @field_validator("matched_value")
    @classmethod
    def _truncate(cls, value: str) -> str:
        return value[:MATCHED_VALUE_MAX_LEN]


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    final_url: str
    # Four-bucket classification
    bucket: Bucket
    bucket_confidence: BucketConfidence = "none"
    # Populated only for platform-assisted
    platform: Optional[str] = None
    platform_score: float = 0
    platform_signals: Tuple[Signal, ...] = ()
    all_platform_scores: Dict[str, float] = {}
    # Populated whenever the heuristics ran
    ai_score: float = 0
    ai_signals: Tuple[Signal, ...] = ()
    error: Optional[str] = None

    @classmethod
    def failed(cls, url: str, final_url: str, error: str) -> "DetectionResult":
        """Result for a page that could not be fetched: nothing else is populated."""
        return cls(url=url, final_url=final_url, bucket="unknown", bucket_confidence="none", error=error)


class BatchRequest(BaseModel):
    urls: List[str] = Field(default_factory=list)


class BatchResultItem(DetectionResult):
    original_row: Dict[str, str] = {}


class BatchResponse(BaseModel):
    results: List[BatchResultItem] = []
