"""
refmatch Core Processor
Main entry point for matching a captured image against the reference catalog
"""

import logging
import threading
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cv2

from refmatch.catalog.reference_catalog import ReferenceCatalog, Source
from refmatch.catalog.sources import directory_source
from refmatch.classification.confidence_scorer import ConfidenceScorer
from refmatch.config import load_config
from refmatch.detection.feature_extractor import FeatureExtractor, FeatureSet
from refmatch.detection.quad_detector import QuadrilateralDetector
from refmatch.engine import ResourceScope, VisionEngine
from refmatch.exceptions import RefMatchError
from refmatch.matching.descriptor_matcher import DescriptorMatcher
from refmatch.preprocessing.image_loader import ImageLoader
from refmatch.results import ComparisonResult, DetectionResult

logger = logging.getLogger(__name__)


class MatchProcessor:
    """Matches captured images against a catalog of reference images."""

    def __init__(self, source: Source, config: Dict[str, Any] = None,
                 engine: Optional[VisionEngine] = None, sleep=time.sleep,
                 config_path: Optional[Union[str, Path]] = None):
        """
        Initialize processor

        Args:
            source: Reference images, see ReferenceCatalog
            config: Configuration overrides merged onto DEFAULT_CONFIG
            engine: Vision engine handle shared by every stage
            sleep: Sleep function used between catalog load retries
            config_path: Optional YAML file applied before the overrides
        """
        self.config = load_config(config_path, overrides=config)
        self.engine = engine or VisionEngine()

        loader_cfg = self.config["loader"]
        matching_cfg = self.config["matching"]
        quad_cfg = self.config["quadrilaterals"]
        catalog_cfg = self.config["catalog"]

        self.loader = ImageLoader(max_long_edge=loader_cfg["max_long_edge"])
        self.extractor = FeatureExtractor(
            n_features=self.config["features"]["max_keypoints"],
            engine=self.engine
        )
        self.matcher = DescriptorMatcher(
            max_distance=matching_cfg["distance_threshold"],
            max_matches=matching_cfg["max_matches"],
            cross_check=matching_cfg["cross_check"],
            engine=self.engine
        )
        self.scorer = ConfidenceScorer(
            match_threshold=self.config["scoring"]["confidence_threshold"]
        )
        self.quad_detector = QuadrilateralDetector(
            blur_kernel=quad_cfg["blur_kernel"],
            canny_low=quad_cfg["canny_low"],
            canny_high=quad_cfg["canny_high"],
            approx_epsilon=quad_cfg["approx_epsilon"],
            min_area=quad_cfg["min_area"]
        )
        self.catalog = ReferenceCatalog(
            source,
            loader=self.loader,
            extractor=self.extractor,
            engine=self.engine,
            max_attempts=catalog_cfg["load_max_attempts"],
            retry_interval=catalog_cfg["retry_interval_ms"] / 1000.0,
            sleep=sleep
        )

        # ORB and BFMatcher instances are not reentrant
        self._request_lock = threading.Lock()

    @classmethod
    def from_directory(cls, directory: Union[str, Path], config: Dict[str, Any] = None,
                       config_path: Optional[Union[str, Path]] = None,
                       **kwargs) -> "MatchProcessor":
        """
        Build a processor whose catalog is read from an image directory.

        Only files whose suffix is listed in catalog.extensions are loaded.
        """
        resolved = load_config(config_path, overrides=config)
        extensions = tuple(resolved["catalog"]["extensions"])
        return cls(lambda: directory_source(directory, extensions),
                   config=resolved, **kwargs)

    def load(self) -> Future:
        """Start loading the reference catalog."""
        return self.catalog.load()

    def detect(self, image_bytes: bytes, timeout: Optional[float] = None) -> DetectionResult:
        """
        Identify the reference shown in a captured image.

        Args:
            image_bytes: Encoded captured image
            timeout: Seconds to wait for an in-flight catalog load

        Returns:
            DetectionResult; match_found is False when nothing clears the threshold

        Raises:
            EngineNotReadyError: Catalog not loaded, failed, or timed out
            DecodeError: Captured bytes are not an image
        """
        self.catalog.wait_until_ready(timeout)
        start_time = time.time()

        with self._request_lock, ResourceScope() as scope:
            image = scope.acquire(self.loader.decode(image_bytes))
            query = scope.acquire(self.extractor.extract(image))
            logger.debug(f"Captured image {image.shape[1]}x{image.shape[0]}: "
                         f"{len(query)} keypoints")

            comparisons = self._compare_all(query)
            quadrilaterals = self.quad_detector.detect(image)

        best = self.scorer.select_best(comparisons)
        processing_time = (time.time() - start_time) * 1000

        if best is None or best.confidence <= 0.0:
            result = DetectionResult(
                match_found=False,
                confidence=0.0,
                best_reference_id=None,
                match_count=0,
                keypoint_count=best.keypoint_count if best else 0,
                quadrilaterals=quadrilaterals,
                comparisons=comparisons,
                processing_time_ms=processing_time
            )
        else:
            result = DetectionResult(
                match_found=self.scorer.is_match(best.confidence),
                confidence=self.scorer.to_percentage(best.confidence),
                best_reference_id=best.reference_id,
                match_count=best.match_count,
                keypoint_count=best.keypoint_count,
                quadrilaterals=quadrilaterals,
                comparisons=comparisons,
                processing_time_ms=processing_time
            )

        logger.info(f"Detection {result.status}: best={result.best_reference_id} "
                    f"confidence={result.confidence:.1f}% quads={len(quadrilaterals)}")
        return result

    def compare_all(self, image_bytes: bytes,
                    timeout: Optional[float] = None) -> List[ComparisonResult]:
        """Compare a captured image against every reference, in catalog order."""
        self.catalog.wait_until_ready(timeout)

        with self._request_lock, ResourceScope() as scope:
            image = scope.acquire(self.loader.decode(image_bytes))
            query = scope.acquire(self.extractor.extract(image))
            return self._compare_all(query)

    def _compare_all(self, query: FeatureSet) -> List[ComparisonResult]:
        comparisons = []
        for reference_id, reference in self.catalog:
            try:
                comparison = self.matcher.compare(query, reference, reference_id, self.scorer)
            except (RefMatchError, cv2.error) as e:
                # One bad reference must not abort the scan
                logger.warning(f"Comparison with {reference_id} failed: {e}")
                comparison = ComparisonResult.failed(reference_id, str(e))
            comparisons.append(comparison)
        return comparisons
