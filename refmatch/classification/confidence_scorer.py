"""Confidence scoring for reference comparisons."""

from typing import Optional, Sequence

from refmatch.results import ComparisonResult


class ConfidenceScorer:
    """Turn match counts into a confidence and a match decision."""

    def __init__(self, match_threshold: float = 0.6):
        self.match_threshold = match_threshold

    def calculate_confidence(self, good_matches: int, query_keypoints: int,
                             reference_keypoints: int) -> float:
        """
        Ratio of good matches to the smaller keypoint count.

        Args:
            good_matches: Number of matches that passed the distance filter
            query_keypoints: Keypoints found in the captured image
            reference_keypoints: Keypoints found in the reference image

        Returns:
            Confidence clamped to [0, 1]
        """
        denominator = min(query_keypoints, reference_keypoints)
        if denominator <= 0:
            return 0.0
        return max(0.0, min(good_matches / denominator, 1.0))

    def is_match(self, confidence: float) -> bool:
        return confidence > self.match_threshold

    def select_best(self, comparisons: Sequence[ComparisonResult]) -> Optional[ComparisonResult]:
        """Highest confidence; the earliest entry wins ties."""
        best = None
        for comparison in comparisons:
            if best is None or comparison.confidence > best.confidence:
                best = comparison
        return best

    @staticmethod
    def to_percentage(confidence: float) -> float:
        return confidence * 100.0
