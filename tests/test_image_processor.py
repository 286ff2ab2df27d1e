"""Tests for decoding and brightness adjustment."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from conftest import make_png
from sitecapture.errors import DecodeFailure
from sitecapture.reporting.image_processor import (
    adjust_brightness,
    decode_image,
    encode_image,
    scale_brightness,
    to_bgr,
)


class TestAdjustBrightness:

    def test_factor_one_is_identity(self, png_bytes):
        decoded = decode_image(png_bytes)
        out = adjust_brightness(png_bytes, 1.0)
        assert out.dtype == np.uint8
        assert np.array_equal(out, decoded)

    def test_result_does_not_alias_input(self):
        img = np.full((4, 4, 3), 100, dtype=np.uint8)
        out = scale_brightness(img, 1.0)
        out[0, 0] = 0
        assert img[0, 0, 0] == 100

    def test_scaling_and_clipping(self):
        img = np.array([[[10, 100, 200]]], dtype=np.uint8)
        assert scale_brightness(img, 2.0).tolist() == [[[20, 200, 255]]]
        assert scale_brightness(img, 0.5).tolist() == [[[5, 50, 100]]]

    def test_alpha_channel_untouched(self):
        img = np.zeros((2, 2, 4), dtype=np.uint8)
        img[..., :3] = 80
        img[..., 3] = 128
        out = scale_brightness(img, 2.0)
        assert (out[..., :3] == 160).all()
        assert (out[..., 3] == 128).all()

    def test_deterministic(self, png_bytes):
        assert np.array_equal(adjust_brightness(png_bytes, 1.3), adjust_brightness(png_bytes, 1.3))

    def test_negative_factor_rejected(self, png_bytes):
        with pytest.raises(ValueError):
            adjust_brightness(png_bytes, -0.5)

    @pytest.mark.parametrize("payload", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n" + b"\x00" * 10])
    def test_decode_failure_propagates(self, payload):
        with pytest.raises(DecodeFailure):
            adjust_brightness(payload, 1.0)


class TestHelpers:

    def test_encode_decode_png_lossless(self):
        img = np.arange(5 * 7 * 3, dtype=np.uint8).reshape(5, 7, 3)
        assert np.array_equal(decode_image(encode_image(img)), img)

    def test_to_bgr_from_gray(self):
        gray = np.full((3, 3), 42, dtype=np.uint8)
        out = to_bgr(gray)
        assert out.shape == (3, 3, 3)
        assert (out == 42).all()

    def test_to_bgr_composites_alpha_on_white(self):
        img = np.zeros((1, 1, 4), dtype=np.uint8)  # black, fully transparent
        assert to_bgr(img).tolist() == [[[255, 255, 255]]]

    def test_decode_jpeg(self):
        img = cv2.imdecode(np.frombuffer(make_png(20, 10), np.uint8), cv2.IMREAD_COLOR)
        jpeg = encode_image(img, ".jpg")
        assert decode_image(jpeg).shape == (10, 20, 3)
