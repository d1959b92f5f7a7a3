"""Descriptor matching between two feature sets."""

import cv2
import numpy as np
from typing import List, Optional

from refmatch.classification.confidence_scorer import ConfidenceScorer
from refmatch.detection.feature_extractor import FeatureSet, require_features
from refmatch.engine import ResourceScope, VisionEngine
from refmatch.results import ComparisonResult


def _sort_key(match: cv2.DMatch):
    return (match.distance, match.queryIdx, match.trainIdx)


class DescriptorMatcher:
    """Brute-force Hamming matching with a good-match filter."""

    def __init__(self, max_distance: float = 40, max_matches: Optional[int] = None,
                 cross_check: bool = True, engine: Optional[VisionEngine] = None):
        """
        Initialize descriptor matcher.

        Args:
            max_distance: Hamming distance a good match must stay below (0-256)
            max_matches: Keep only this many best good matches (None = all)
            cross_check: Require mutual nearest neighbours
            engine: Vision engine handle, a default one is created if omitted
        """
        self.max_distance = max_distance
        self.max_matches = max_matches
        self.cross_check = cross_check
        self.engine = engine or VisionEngine()

    def match_descriptors(self, desc1: np.ndarray, desc2: np.ndarray) -> List[cv2.DMatch]:
        """All nearest-neighbour matches, ascending by distance."""
        if desc1 is None or desc2 is None or len(desc1) == 0 or len(desc2) == 0:
            return []

        with ResourceScope() as scope:
            bf = scope.acquire(self.engine.create_matcher(self.cross_check))
            matches = bf.match(desc1, desc2)

        return sorted(matches, key=_sort_key)

    def filter_good(self, matches: List[cv2.DMatch],
                    max_distance: Optional[float] = None) -> List[cv2.DMatch]:
        """Keep sorted matches under the distance threshold, capped at max_matches."""
        if max_distance is None:
            max_distance = self.max_distance
        good = [m for m in matches if m.distance < max_distance]
        if self.max_matches is not None:
            good = good[:self.max_matches]
        return good

    def match_features(self, desc1: np.ndarray, desc2: np.ndarray,
                       max_distance: Optional[float] = None) -> List[cv2.DMatch]:
        """Match features between two descriptor sets."""
        matches = self.match_descriptors(desc1, desc2)
        return self.filter_good(matches, max_distance)

    def match(self, query: FeatureSet, reference: FeatureSet) -> List[cv2.DMatch]:
        """Good matches from query (captured) to reference."""
        return self.match_features(query.descriptors, reference.descriptors)

    def compare(self, query: FeatureSet, reference: FeatureSet, reference_id: str,
                scorer: ConfidenceScorer) -> ComparisonResult:
        """
        Score the captured features against one reference.

        Raises:
            InsufficientFeaturesError: If either side has no keypoints
        """
        require_features(query, "captured image")
        require_features(reference, f"reference {reference_id}")

        good = self.match(query, reference)
        keypoint_count = min(len(query), len(reference))
        confidence = scorer.calculate_confidence(len(good), len(query), len(reference))

        return ComparisonResult(
            reference_id=reference_id,
            match_count=len(good),
            keypoint_count=keypoint_count,
            confidence=confidence
        )
