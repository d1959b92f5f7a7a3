"""
Image Loader Module
Decodes captured and reference images into size-capped pixel grids
"""

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from refmatch.exceptions import DecodeError


class ImageLoader:
    """Decodes images and caps their long edge with area resampling."""

    def __init__(self, max_long_edge: int = 800):
        """
        Initialize image loader.

        Args:
            max_long_edge: Largest allowed width or height in pixels
        """
        self.max_long_edge = max_long_edge

    def decode(self, data: bytes) -> np.ndarray:
        """
        Decode encoded image bytes (PNG, JPEG, ...).

        Args:
            data: Raw encoded bytes

        Returns:
            BGR image with long edge <= max_long_edge

        Raises:
            DecodeError: If the bytes are empty, corrupt or unsupported
        """
        if not data:
            raise DecodeError("Image data is empty")

        try:
            buffer = np.frombuffer(data, dtype=np.uint8)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Image data must be bytes-like: {e}") from e

        try:
            image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
        except cv2.error as e:
            raise DecodeError(f"Failed to decode image: {e}") from e

        if image is None or image.size == 0:
            raise DecodeError("Failed to decode image: unsupported or corrupt data")

        return self.normalize(image)

    def from_array(self, pixels: np.ndarray) -> np.ndarray:
        """Accept an in-memory pixel buffer (gray, BGR or BGRA)."""
        if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8:
            raise DecodeError("Pixel source must be a uint8 numpy array")
        if pixels.ndim == 3 and pixels.shape[2] == 4:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_BGRA2BGR)
        elif pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]
        elif pixels.ndim not in (2, 3) or (pixels.ndim == 3 and pixels.shape[2] != 3):
            raise DecodeError(f"Unsupported pixel layout {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise DecodeError("Image has zero width or height")

        return self.normalize(pixels.copy())

    def load(self, path: Union[str, Path]) -> np.ndarray:
        """Read and decode an image file."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise DecodeError(f"Failed to read {path}: {e}") from e
        return self.decode(data)

    def normalize(self, image: np.ndarray) -> np.ndarray:
        """Downscale so the long edge fits, keeping the aspect ratio."""
        height, width = image.shape[:2]
        long_edge = max(height, width)
        if long_edge <= self.max_long_edge:
            return image

        scale = self.max_long_edge / long_edge
        if width >= height:
            new_size = (self.max_long_edge, max(1, round(height * scale)))
        else:
            new_size = (max(1, round(width * scale)), self.max_long_edge)

        # Area averaging, not nearest-neighbour
        return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
