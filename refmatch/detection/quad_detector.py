"""Quadrilateral detection using edges and contour approximation."""

import cv2
import numpy as np
from typing import List

from refmatch.results import Quadrilateral


class QuadrilateralDetector:
    """Finds rectangle-like four-cornered shapes."""

    def __init__(self, blur_kernel: int = 5, canny_low: int = 50,
                 canny_high: int = 150, approx_epsilon: float = 0.02,
                 min_area: float = 1000):
        """
        Initialize quadrilateral detector.

        Args:
            blur_kernel: Gaussian blur kernel size (odd)
            canny_low: Lower Canny hysteresis threshold
            canny_high: Upper Canny hysteresis threshold
            approx_epsilon: Polygon approximation tolerance as ratio of perimeter
            min_area: Minimum enclosed area in square pixels
        """
        self.blur_kernel = blur_kernel
        self.canny_low = canny_low
        self.canny_high = canny_high
        self.approx_epsilon = approx_epsilon
        self.min_area = min_area

    def detect_edges(self, image: np.ndarray) -> np.ndarray:
        """Blur and run Canny on a BGR or gray image."""
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
        blurred = cv2.GaussianBlur(gray, (self.blur_kernel, self.blur_kernel), 0)
        return cv2.Canny(blurred, self.canny_low, self.canny_high)

    def detect(self, image: np.ndarray) -> List[Quadrilateral]:
        """
        Detect quadrilaterals in image.

        Args:
            image: Input BGR or grayscale image

        Returns:
            Quadrilaterals in contour order
        """
        edges = self.detect_edges(image)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        quads = []
        for contour in contours:
            quad = self.approximate(contour)
            if quad is not None:
                quads.append(quad)
        return quads

    def approximate(self, contour: np.ndarray):
        """Return a Quadrilateral if the contour simplifies to one, else None."""
        perimeter = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, self.approx_epsilon * perimeter, True)
        if len(approx) != 4:
            return None

        area = float(cv2.contourArea(approx))
        if area < self.min_area:
            return None

        points = tuple((int(x), int(y)) for x, y in approx.reshape(4, 2))
        return Quadrilateral(points=points, area=area)
