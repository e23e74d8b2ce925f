from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PlagiarismCheckRequest(BaseModel):
    text: str = ""


class MatchSegment(_Frozen):
    start: int          # char offset into the submitted text
    end: int            # exclusive
    source_id: str
    source_title: str
    # evidence
    matched_text: Optional[str] = None
    snippet: Optional[str] = None          # source context around the match
    overlap_ratio: Optional[float] = None  # length / submitted text length

    @property
    def length(self) -> int:
        return self.end - self.start


class SourceSummary(_Frozen):
    source_id: str
    title: str
    url: str
    matched_segment_count: int
    matched_chars: int


class DetectionResult(_Frozen):
    similarity: int     # 0–100
    risk: RiskLevel
    matches: List[MatchSegment]
    sources: List[SourceSummary]
    recommendations: List[str]
    summary: str
