"""Tests for classification module."""

import pytest
from refmatch.classification.confidence_scorer import ConfidenceScorer
from refmatch.results import ComparisonResult


class TestConfidenceScorer:
    """Test confidence scoring."""

    def test_scorer_initialization(self):
        """Test ConfidenceScorer default threshold."""
        scorer = ConfidenceScorer()
        assert scorer.match_threshold == 0.6

    def test_calculate_confidence(self):
        """Test ratio uses the smaller keypoint count."""
        scorer = ConfidenceScorer()
        assert scorer.calculate_confidence(50, 100, 200) == pytest.approx(0.5)
        assert scorer.calculate_confidence(50, 200, 100) == pytest.approx(0.5)

    def test_confidence_clamped(self):
        """Test values above one are clamped."""
        scorer = ConfidenceScorer()
        assert scorer.calculate_confidence(150, 100, 100) == 1.0

    def test_confidence_zero_keypoints(self):
        """Test zero keypoints give zero confidence."""
        scorer = ConfidenceScorer()
        assert scorer.calculate_confidence(0, 0, 100) == 0.0

    def test_confidence_range(self):
        """Test confidence always stays in [0, 1]."""
        scorer = ConfidenceScorer()
        for good in range(0, 300, 7):
            for kp in (1, 10, 99, 250):
                assert 0.0 <= scorer.calculate_confidence(good, kp, 500) <= 1.0

    def test_is_match_strict(self):
        """Test the threshold itself is not a match."""
        scorer = ConfidenceScorer(match_threshold=0.6)
        assert scorer.is_match(0.61)
        assert not scorer.is_match(0.6)
        assert not scorer.is_match(0.0)

    def test_select_best(self):
        """Test highest confidence is selected."""
        scorer = ConfidenceScorer()
        comparisons = [
            ComparisonResult("A", confidence=0.2),
            ComparisonResult("B", confidence=0.7),
            ComparisonResult("C", confidence=0.4),
        ]
        assert scorer.select_best(comparisons).reference_id == "B"

    def test_select_best_tie_first_wins(self):
        """Test ties resolve to catalog order."""
        scorer = ConfidenceScorer()
        comparisons = [
            ComparisonResult("A", confidence=0.1),
            ComparisonResult("B", confidence=0.8),
            ComparisonResult("C", confidence=0.8),
        ]
        assert scorer.select_best(comparisons).reference_id == "B"

    def test_select_best_empty(self):
        """Test empty input gives None."""
        assert ConfidenceScorer().select_best([]) is None

    def test_to_percentage(self):
        """Test percentage scaling."""
        assert ConfidenceScorer.to_percentage(0.625) == pytest.approx(62.5)
