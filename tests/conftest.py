"""Shared fixtures: synthetic reference and capture images."""

import cv2
import numpy as np
import pytest


def make_pattern(seed: int, height: int = 300, width: int = 400, block: int = 10) -> np.ndarray:
    """Blocky random texture with plenty of ORB corners."""
    rng = np.random.default_rng(seed)
    small = rng.integers(0, 256, (height // block, width // block), dtype=np.uint8)
    gray = cv2.resize(small, (width, height), interpolation=cv2.INTER_NEAREST)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


def encode(image: np.ndarray, ext: str = '.png') -> bytes:
    ok, buffer = cv2.imencode(ext, image)
    assert ok
    return buffer.tobytes()


def no_sleep(seconds: float):
    pass


@pytest.fixture
def pattern_a():
    return make_pattern(1)


@pytest.fixture
def pattern_b():
    return make_pattern(2)


@pytest.fixture
def blank_image():
    return np.full((300, 400, 3), 128, dtype=np.uint8)


@pytest.fixture
def rectangle_image():
    image = np.zeros((400, 400, 3), dtype=np.uint8)
    cv2.rectangle(image, (100, 100), (300, 250), (255, 255, 255), -1)
    return image


@pytest.fixture
def reference_bytes(pattern_a, pattern_b):
    return {"A": encode(pattern_a), "B": encode(pattern_b)}
