"""
Tests for folder name normalization and path helpers.
"""

import re

import pytest

from repogallery.core.errors import InvalidNameError
from repogallery.services.naming import (
    is_image_name,
    normalize_folder_name,
    placeholder_path,
    require_folder_id,
)

SAFE = re.compile(r"^[a-z0-9-]*$")

SAMPLES = [
    "",
    "Photos",
    "Ảnh Đẹp 2024",
    "đường-phố",
    "Crème Brûlée!",
    "  spaced  out  ",
    "\u0301\u0302\u0303",
    "日本語",
    "UPPER_lower-123",
    "İstanbul",
    "a/b\\c",
]


class TestNormalizeFolderName:
    def test_vietnamese_diacritics(self):
        assert normalize_folder_name("Ảnh Đẹp 2024") == "anhdep2024"

    def test_d_stroke_maps_to_d(self):
        assert normalize_folder_name("đường-phố") == "duong-pho"

    def test_keeps_hyphen_and_digits(self):
        assert normalize_folder_name("Trip-2023") == "trip-2023"

    def test_removes_everything_else(self):
        assert normalize_folder_name("a/b\\c d_e.f") == "abcdef"

    def test_pure_diacritics_become_empty(self):
        assert normalize_folder_name("\u0301\u0302") == ""

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_total_and_safe(self, raw):
        assert SAFE.match(normalize_folder_name(raw))

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw):
        once = normalize_folder_name(raw)
        assert normalize_folder_name(once) == once


class TestRequireFolderId:
    def test_rejects_empty_result(self):
        with pytest.raises(InvalidNameError):
            require_folder_id("!!!")

    def test_returns_identifier(self):
        assert require_folder_id("My Trip") == "mytrip"


class TestImageNames:
    @pytest.mark.parametrize("name", ["a.jpg", "b.JPEG", "c.Png", "d.gif", "e.webp"])
    def test_recognized(self, name):
        assert is_image_name(name)

    @pytest.mark.parametrize("name", [".keep", "notes.txt", "jpg", "archive.jpg.zip"])
    def test_not_recognized(self, name):
        assert not is_image_name(name)

    def test_placeholder_path(self):
        assert placeholder_path("photos") == "photos/.keep"
