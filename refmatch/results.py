"""Result containers returned by the matching pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


Point = Tuple[int, int]


@dataclass(frozen=True)
class Quadrilateral:
    """Four-cornered region found in an image."""
    points: Tuple[Point, Point, Point, Point]
    area: float

    def __post_init__(self):
        if len(self.points) != 4:
            raise ValueError(f"Quadrilateral needs 4 points, got {len(self.points)}")

    def to_list(self) -> List[List[int]]:
        return [[x, y] for x, y in self.points]


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing the captured image against one reference."""
    reference_id: str
    match_count: int = 0
    keypoint_count: int = 0
    confidence: float = 0.0
    error: Optional[str] = None

    @classmethod
    def failed(cls, reference_id: str, error: str) -> 'ComparisonResult':
        """Zero-confidence result for a comparison that could not run."""
        return cls(reference_id=reference_id, error=error)

    def describe(self) -> str:
        if self.error:
            return f"{self.reference_id}: comparison failed ({self.error})"
        return (f"{self.reference_id}: similarity {self.confidence * 100:.2f}% "
                f"({self.match_count} matches)")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference_id": self.reference_id,
            "match_count": self.match_count,
            "keypoint_count": self.keypoint_count,
            "confidence": round(self.confidence, 4),
            "error": self.error,
        }


@dataclass
class DetectionResult:
    """
    Answer to one detection request.

    ``confidence`` is on a 0-100 scale; ``best_reference_id`` is None when no
    reference produced any good match.
    """
    match_found: bool
    confidence: float
    best_reference_id: Optional[str]
    match_count: int
    keypoint_count: int
    quadrilaterals: List[Quadrilateral] = field(default_factory=list)
    comparisons: List[ComparisonResult] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def status(self) -> str:
        return "match_found" if self.match_found else "no_match_found"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "match_found": self.match_found,
            "confidence": round(self.confidence, 2),
            "best_reference_id": self.best_reference_id,
            "match_count": self.match_count,
            "keypoint_count": self.keypoint_count,
            "quadrilaterals": [q.to_list() for q in self.quadrilaterals],
            "comparisons": [c.to_dict() for c in self.comparisons],
            "processing_time_ms": round(self.processing_time_ms, 2),
        }
