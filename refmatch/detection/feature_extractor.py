"""Feature extraction for reference and captured images."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2
import numpy as np

from refmatch.engine import ResourceScope, VisionEngine
from refmatch.exceptions import InsufficientFeaturesError

DESCRIPTOR_BYTES = 32


def _empty_descriptors() -> np.ndarray:
    return np.zeros((0, DESCRIPTOR_BYTES), dtype=np.uint8)


@dataclass(eq=False)
class FeatureSet:
    """ORB keypoints with their parallel descriptor rows."""
    keypoints: Tuple[cv2.KeyPoint, ...] = ()
    descriptors: np.ndarray = field(default_factory=_empty_descriptors)

    def __post_init__(self):
        self.keypoints = tuple(self.keypoints)
        if self.descriptors is None:
            self.descriptors = _empty_descriptors()
        if len(self.keypoints) != len(self.descriptors):
            raise ValueError(
                f"{len(self.keypoints)} keypoints but {len(self.descriptors)} descriptors")

    def __len__(self) -> int:
        return len(self.keypoints)

    @property
    def is_empty(self) -> bool:
        return len(self.keypoints) == 0

    def points(self) -> List[Tuple[float, float]]:
        return [kp.pt for kp in self.keypoints]

    def release(self):
        """Drop the keypoint and descriptor buffers."""
        self.keypoints = ()
        self.descriptors = _empty_descriptors()


class FeatureExtractor:
    """Extract ORB keypoints and binary descriptors."""

    def __init__(self, n_features: int = 500, engine: Optional[VisionEngine] = None):
        """
        Initialize feature extractor.

        Args:
            n_features: Maximum number of keypoints kept per image
            engine: Vision engine handle, a default one is created if omitted
        """
        self.n_features = n_features
        self.engine = engine or VisionEngine()

    @staticmethod
    def to_gray(image: np.ndarray) -> np.ndarray:
        """Convert BGR to single channel; gray input is returned as is."""
        if image.ndim == 2:
            return image
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    def extract(self, image: np.ndarray) -> FeatureSet:
        """
        Detect keypoints and compute descriptors.

        ORB scoring and the rotated BRIEF pattern are fixed, so the same
        pixels and n_features always give the same FeatureSet.

        Args:
            image: BGR or grayscale image

        Returns:
            FeatureSet, possibly empty
        """
        with ResourceScope() as scope:
            gray = self.to_gray(image)
            orb = scope.acquire(self.engine.create_detector(self.n_features))
            keypoints, descriptors = orb.detectAndCompute(gray, None)

        if descriptors is None or not keypoints:
            return FeatureSet()
        return FeatureSet(keypoints, descriptors)

    def extract_keypoints(self, image: np.ndarray) -> Tuple[List, np.ndarray]:
        """Extract ORB keypoints and descriptors."""
        features = self.extract(image)
        return list(features.keypoints), features.descriptors


def require_features(features: FeatureSet, label: str) -> FeatureSet:
    """Raise InsufficientFeaturesError if ``features`` has no keypoints."""
    if features.is_empty:
        raise InsufficientFeaturesError(f"No keypoints found in {label}")
    return features
