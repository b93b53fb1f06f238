"""Tests for the option records and the keep-style merge."""

from __future__ import annotations

import dataclasses

import pytest

from mediathumb.engine.options import (
    FONTMAGICK_DEFAULTS,
    MAGICK_DEFAULTS,
    PDFTOPPM_DEFAULTS,
    TOOL_DEFAULTS,
    MagickOptions,
    as_arg,
    merge_options,
    options_as_dict,
)


class TestMergeOptions:
    def test_missing_overrides_return_defaults(self):
        assert merge_options(MAGICK_DEFAULTS, None) is MAGICK_DEFAULTS
        assert merge_options(MAGICK_DEFAULTS, {}) == MAGICK_DEFAULTS

    def test_caller_values_win(self):
        merged = merge_options(MAGICK_DEFAULTS, {"quality": "80%"})

        assert merged.quality == "80%"
        assert merged.blurred == "0.06"
        assert merged.interlace == "Plane"
        assert merged.frame == "[0]"

    def test_none_counts_as_missing(self):
        merged = merge_options(PDFTOPPM_DEFAULTS, {"first_page": None, "last_page": 5})

        assert merged.first_page == "1"
        assert merged.last_page == 5

    def test_unknown_keys_are_kept(self):
        merged = merge_options(MAGICK_DEFAULTS, {"colorspace": "sRGB", "quality": "10%"})

        assert merged.extras == {"colorspace": "sRGB"}
        bag = options_as_dict(merged)
        assert bag["colorspace"] == "sRGB"
        assert bag["quality"] == "10%"

    def test_defaults_are_never_mutated(self):
        merge_options(MAGICK_DEFAULTS, {"quality": "1%", "extra": 1})

        assert MAGICK_DEFAULTS == MagickOptions()
        assert dict(MAGICK_DEFAULTS.extras) == {}

    def test_lists_become_tuples(self):
        merged = merge_options(FONTMAGICK_DEFAULTS, {"text_lines": ["a", "b"]})

        assert merged.text_lines == ("a", "b")

    def test_record_override_is_used_as_is(self):
        record = MagickOptions(quality="90%")

        assert merge_options(MAGICK_DEFAULTS, record) is record

    def test_merged_record_is_frozen(self):
        merged = merge_options(MAGICK_DEFAULTS, {"quality": "30%"})

        with pytest.raises(dataclasses.FrozenInstanceError):
            merged.quality = "40%"  # type: ignore[misc]
        with pytest.raises(TypeError):
            merged.extras["x"] = 1  # type: ignore[index]


def test_tool_defaults_cover_every_configurable_generator():
    assert set(TOOL_DEFAULTS) == {
        "magick",
        "fontmagick",
        "ffmpeg",
        "ffmpegthumbnailer",
        "pdftoppm",
        "epubthumbnailer",
        "ebookmeta",
    }


def test_options_as_dict_lists_fields():
    assert options_as_dict(MAGICK_DEFAULTS) == {
        "quality": "20%",
        "blurred": "0.06",
        "interlace": "Plane",
        "frame": "[0]",
    }


@pytest.mark.parametrize(("value", "expected"), [("20%", "20%"), (100, "100"), (0.06, "0.06"), (-1, "-1")])
def test_as_arg(value, expected):
    assert as_arg(value) == expected
