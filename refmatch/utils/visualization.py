"""Visualization utilities for debugging and display."""

import cv2
import numpy as np
from typing import List, Sequence, Tuple

from refmatch.results import Quadrilateral


def _to_bgr(image: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR) if image.ndim == 2 else image.copy()


def draw_keypoints(image: np.ndarray, keypoints: Sequence,
                  color: Tuple[int, int, int] = (0, 255, 255)) -> np.ndarray:
    """Draw keypoints on image."""
    output = _to_bgr(image)
    for kp in keypoints:
        x, y = int(kp.pt[0]), int(kp.pt[1])
        cv2.circle(output, (x, y), 3, color, -1)
    return output


def draw_quadrilaterals(image: np.ndarray, quads: List[Quadrilateral],
                        color: Tuple[int, int, int] = (0, 255, 0),
                        thickness: int = 2) -> np.ndarray:
    """Outline detected quadrilaterals."""
    output = _to_bgr(image)
    for quad in quads:
        pts = np.array(quad.points, dtype=np.int32).reshape(-1, 1, 2)
        cv2.polylines(output, [pts], True, color, thickness)
        for x, y in quad.points:
            cv2.circle(output, (x, y), 4, (0, 0, 255), -1)
    return output


def draw_matches(query_image: np.ndarray, query_keypoints: Sequence,
                 reference_image: np.ndarray, reference_keypoints: Sequence,
                 matches: Sequence, max_matches: int = 50) -> np.ndarray:
    """Side-by-side view with the best correspondences joined."""
    return cv2.drawMatches(
        _to_bgr(query_image), list(query_keypoints),
        _to_bgr(reference_image), list(reference_keypoints),
        list(matches)[:max_matches], None,
        flags=cv2.DrawMatchesFlags_NOT_DRAW_SINGLE_POINTS
    )


def blend_comparison(reference: np.ndarray, captured: np.ndarray,
                     alpha: float = 0.5) -> np.ndarray:
    """
    Overlay the reference on the captured image at ``alpha`` opacity.

    The canvas takes the larger width and height of the two images; both are
    placed at the top-left corner.
    """
    reference = _to_bgr(reference)
    captured = _to_bgr(captured)
    height = max(reference.shape[0], captured.shape[0])
    width = max(reference.shape[1], captured.shape[1])

    base = np.zeros((height, width, 3), dtype=np.uint8)
    base[:captured.shape[0], :captured.shape[1]] = captured
    top = base.copy()
    top[:reference.shape[0], :reference.shape[1]] = reference
    return cv2.addWeighted(top, alpha, base, 1 - alpha, 0)
