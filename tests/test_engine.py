"""Tests for the vision engine handle and resource scopes."""

import pytest
import cv2
from refmatch.engine import ResourceScope, VisionEngine
from refmatch.exceptions import EngineNotReadyError, NativeResourceError


class FlakyProbe:
    """Probe that fails a fixed number of times before succeeding."""

    def __init__(self, failures, exc=None):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            if self.exc is not None:
                raise self.exc
            return False
        return True


class Tracked:
    """Resource that records its release."""

    def __init__(self, name, log, fail=False):
        self.name = name
        self.log = log
        self.fail = fail

    def release(self):
        self.log.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} release failed")


class TestVisionEngine:
    """Test engine availability checks."""

    def test_default_probe(self):
        """Test OpenCV is available in the test environment."""
        engine = VisionEngine()
        assert engine.check_available()
        assert engine.available

    def test_retry_until_available(self):
        """Test probing retries at a fixed interval."""
        probe = FlakyProbe(failures=2)
        sleeps = []
        engine = VisionEngine(probe=probe)

        assert engine.wait_until_available(max_attempts=10, retry_interval=0.5,
                                           sleep=sleeps.append) is engine
        assert probe.calls == 3
        assert sleeps == [0.5, 0.5]

    def test_retry_budget_exhausted(self):
        """Test bounded attempts end in EngineNotReadyError."""
        probe = FlakyProbe(failures=100)
        sleeps = []
        engine = VisionEngine(probe=probe)

        with pytest.raises(EngineNotReadyError):
            engine.wait_until_available(max_attempts=4, retry_interval=1.0, sleep=sleeps.append)
        assert probe.calls == 4
        assert len(sleeps) == 3
        assert not engine.available

    def test_probe_exception_counts_as_failure(self):
        """Test a raising probe is retried."""
        probe = FlakyProbe(failures=1, exc=RuntimeError("runtime not initialised"))
        engine = VisionEngine(probe=probe)
        engine.wait_until_available(max_attempts=3, retry_interval=0, sleep=lambda s: None)
        assert engine.available

    def test_create_detector_and_matcher(self):
        """Test factory methods return OpenCV objects."""
        engine = VisionEngine()
        assert isinstance(engine.create_detector(100), cv2.Feature2D)
        assert isinstance(engine.create_matcher(), cv2.DescriptorMatcher)


class TestResourceScope:
    """Test scoped release."""

    def test_release_reverse_order(self):
        """Test resources are released last-in first-out."""
        log = []
        with ResourceScope() as scope:
            scope.acquire(Tracked("a", log))
            scope.acquire(Tracked("b", log))
            assert scope.open_count == 2
        assert log == ["b", "a"]
        assert scope.open_count == 0

    def test_release_on_exception(self):
        """Test resources are released when the body raises."""
        log = []
        with pytest.raises(ValueError):
            with ResourceScope() as scope:
                scope.acquire(Tracked("a", log))
                raise ValueError("boom")
        assert log == ["a"]

    def test_release_failure_raises_after_all_released(self):
        """Test a failing release still lets the others run."""
        log = []
        with pytest.raises(NativeResourceError):
            with ResourceScope() as scope:
                scope.acquire(Tracked("a", log))
                scope.acquire(Tracked("b", log, fail=True))
                scope.acquire(Tracked("c", log))
        assert log == ["c", "b", "a"]

    def test_release_failure_does_not_mask_error(self):
        """Test the original exception wins over a release failure."""
        log = []
        with pytest.raises(KeyError):
            with ResourceScope() as scope:
                scope.acquire(Tracked("a", log, fail=True))
                raise KeyError("original")
        assert log == ["a"]

    def test_custom_release(self):
        """Test an explicit release callable is used."""
        released = []
        with ResourceScope() as scope:
            scope.acquire([1, 2, 3], release=released.append)
        assert released == [[1, 2, 3]]

    def test_acquire_none(self):
        """Test a missing resource is reported."""
        with ResourceScope() as scope:
            with pytest.raises(NativeResourceError):
                scope.acquire(None)

    def test_opencv_objects(self):
        """Test OpenCV algorithms are released through clear()."""
        engine = VisionEngine()
        with ResourceScope() as scope:
            scope.acquire(engine.create_detector(10))
            scope.acquire(engine.create_matcher())
        assert scope.open_count == 0
