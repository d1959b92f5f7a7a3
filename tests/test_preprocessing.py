"""Tests for preprocessing module."""

import pytest
import numpy as np
import cv2
from refmatch.preprocessing.image_loader import ImageLoader
from refmatch.exceptions import DecodeError

from conftest import encode, make_pattern


class TestImageLoader:
    """Test decoding and downscaling."""

    def test_loader_initialization(self):
        """Test ImageLoader default cap."""
        loader = ImageLoader()
        assert loader.max_long_edge == 800

    def test_decode_png(self, pattern_a):
        """Test decoding a small PNG keeps pixels unchanged."""
        loader = ImageLoader()
        image = loader.decode(encode(pattern_a))
        assert image.shape == pattern_a.shape
        assert np.array_equal(image, pattern_a)

    def test_decode_landscape_downscale(self):
        """Test long edge is capped for a wide image."""
        loader = ImageLoader(max_long_edge=800)
        image = loader.decode(encode(make_pattern(3, height=1200, width=1600)))
        assert image.shape[:2] == (600, 800)

    def test_decode_portrait_downscale(self):
        """Test long edge is capped for a tall image."""
        loader = ImageLoader(max_long_edge=800)
        image = loader.decode(encode(make_pattern(4, height=1200, width=600)))
        assert image.shape[:2] == (800, 400)

    def test_downscale_preserves_aspect_ratio(self):
        """Test aspect ratio survives an uneven downscale."""
        loader = ImageLoader(max_long_edge=500)
        source = make_pattern(5, height=730, width=1230)
        image = loader.normalize(source)

        assert max(image.shape[:2]) == 500
        original_ratio = source.shape[1] / source.shape[0]
        new_ratio = image.shape[1] / image.shape[0]
        assert abs(original_ratio - new_ratio) < 1.0 / image.shape[0]

    def test_small_image_untouched(self):
        """Test images under the cap are not resized."""
        loader = ImageLoader(max_long_edge=800)
        source = make_pattern(6, height=200, width=300)
        assert loader.normalize(source) is source

    def test_decode_corrupt_bytes(self):
        """Test corrupt data raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.decode(b"definitely not an image")

    def test_decode_empty_bytes(self):
        """Test empty data raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.decode(b"")

    @pytest.mark.parametrize("data", ["not bytes", 12345])
    def test_decode_not_bytes(self, data):
        """Test non-bytes input raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.decode(data)

    def test_decode_truncated_png(self, pattern_a):
        """Test truncated PNG raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.decode(encode(pattern_a)[:40])

    def test_from_array_bgra(self):
        """Test alpha channel is dropped."""
        loader = ImageLoader()
        pixels = np.zeros((100, 120, 4), dtype=np.uint8)
        image = loader.from_array(pixels)
        assert image.shape == (100, 120, 3)

    def test_from_array_copies(self, pattern_a):
        """Test the loader does not share the caller's buffer."""
        loader = ImageLoader()
        image = loader.from_array(pattern_a)
        image[0, 0] = 7
        assert not np.shares_memory(image, pattern_a)

    def test_from_array_zero_dimensions(self):
        """Test zero-size pixel grid raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.from_array(np.zeros((0, 10, 3), dtype=np.uint8))

    def test_from_array_wrong_dtype(self):
        """Test float pixels raise DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.from_array(np.zeros((10, 10, 3), dtype=np.float32))

    def test_load_missing_file(self, tmp_path):
        """Test missing file raises DecodeError."""
        loader = ImageLoader()
        with pytest.raises(DecodeError):
            loader.load(tmp_path / "missing.png")

    def test_load_file(self, tmp_path, pattern_a):
        """Test loading from disk."""
        path = tmp_path / "ref.png"
        cv2.imwrite(str(path), pattern_a)
        image = ImageLoader().load(path)
        assert image.shape == pattern_a.shape
