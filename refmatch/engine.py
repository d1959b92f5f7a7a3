"""
Vision engine handle and scoped resource ownership.

The engine wraps the OpenCV factories used by the extractor and matcher so
that a single handle, checked for availability once, is injected into every
stage instead of each stage probing ``cv2`` on its own.
"""

import logging
import time
from typing import Any, Callable, List, Optional, Tuple

import cv2
import numpy as np

from refmatch.exceptions import EngineNotReadyError, NativeResourceError

logger = logging.getLogger(__name__)


def _default_probe() -> bool:
    """Check that ORB and the Hamming brute-force matcher can be created."""
    if not hasattr(cv2, 'ORB_create') or not hasattr(cv2, 'BFMatcher'):
        return False
    orb = cv2.ORB_create(nfeatures=1)
    keypoints = orb.detect(np.zeros((32, 32), dtype=np.uint8), None)
    return keypoints is not None


class VisionEngine:
    """Opaque handle to the OpenCV feature engine."""

    def __init__(self, probe: Optional[Callable[[], bool]] = None):
        """
        Initialize engine handle.

        Args:
            probe: Availability check, defaults to creating an ORB detector
        """
        self._probe = probe or _default_probe
        self.available = False

    def check_available(self) -> bool:
        """Run the availability probe once."""
        try:
            self.available = bool(self._probe())
        except (cv2.error, RuntimeError, OSError) as e:
            logger.warning(f"Vision engine probe failed: {e}")
            self.available = False
        return self.available

    def wait_until_available(self, max_attempts: int = 10,
                             retry_interval: float = 1.0,
                             sleep: Callable[[float], None] = time.sleep) -> 'VisionEngine':
        """
        Block until the engine answers its probe.

        Args:
            max_attempts: Number of probes before giving up
            retry_interval: Seconds between probes
            sleep: Sleep function (injectable for tests)

        Returns:
            This handle, marked available

        Raises:
            EngineNotReadyError: If every attempt failed
        """
        for attempt in range(1, max_attempts + 1):
            if self.check_available():
                if attempt > 1:
                    logger.info(f"Vision engine available after {attempt} attempts")
                return self
            logger.debug(f"Vision engine not ready (attempt {attempt}/{max_attempts})")
            if attempt < max_attempts:
                sleep(retry_interval)

        raise EngineNotReadyError(
            f"Vision engine unavailable after {max_attempts} attempts")

    def create_detector(self, n_features: int = 500):
        """Create an ORB keypoint detector / descriptor extractor."""
        detector = cv2.ORB_create(nfeatures=n_features)
        if detector is None:
            raise NativeResourceError("Could not create ORB detector")
        return detector

    def create_matcher(self, cross_check: bool = True):
        """Create a brute-force Hamming matcher."""
        matcher = cv2.BFMatcher(cv2.NORM_HAMMING, crossCheck=cross_check)
        if matcher is None:
            raise NativeResourceError("Could not create BFMatcher")
        return matcher


def _release(resource: Any):
    """Release one resource using whatever hook it offers."""
    release = getattr(resource, 'release', None)
    if callable(release):
        release()
    elif isinstance(resource, cv2.Algorithm):
        resource.clear()


class ResourceScope:
    """
    Owns the engine resources of one call and releases them on exit.

    Resources are released in reverse acquisition order on every exit path.
    A failed release raises NativeResourceError once all other resources are
    released, unless another exception is already propagating.
    """

    def __init__(self):
        self._resources: List[Tuple[Any, Optional[Callable[[Any], None]]]] = []

    def acquire(self, resource: Any, release: Optional[Callable[[Any], None]] = None) -> Any:
        """Register a resource and return it unchanged."""
        if resource is None:
            raise NativeResourceError("Vision engine returned no resource")
        self._resources.append((resource, release))
        return resource

    @property
    def open_count(self) -> int:
        """Number of resources still held."""
        return len(self._resources)

    def release_all(self):
        """Release every held resource."""
        errors = []
        while self._resources:
            resource, release = self._resources.pop()
            try:
                if release is not None:
                    release(resource)
                else:
                    _release(resource)
            except Exception as e:
                errors.append(e)

        if errors:
            raise NativeResourceError(
                f"Failed to release {len(errors)} resource(s): {errors[0]}") from errors[0]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            self.release_all()
        except NativeResourceError as e:
            if exc_type is None:
                raise
            logger.error(f"{e} while handling {exc_type.__name__}")
        return False
