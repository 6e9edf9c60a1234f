"""Tests for the preset table."""

import pytest

from netshape import PRESET_TABLE, PRESETS, Preset
from netshape.exceptions import InvalidValueError
from netshape.presets import build_preset_index, canonical_presets


class TestPresetTable:
    """Tests for the built-in preset table."""

    def test_aliases_share_one_entry(self):
        """Test that alias names resolve to the same row."""
        assert PRESETS["2.5g"] is PRESETS["gprs"]
        assert PRESETS["gprs"] is PRESETS["edge"]
        assert PRESETS["4g"] is PRESETS["lte"]

    def test_every_name_is_indexed(self):
        """Test that each name of each entry is in the index."""
        for preset in PRESET_TABLE:
            for name in preset.names:
                assert PRESETS[name] is preset

    def test_index_is_read_only(self):
        """Test that the index cannot be mutated."""
        with pytest.raises(TypeError):
            PRESETS["5g"] = PRESET_TABLE[0]

    def test_table_values_are_valid(self):
        """Test that every built-in row passes validation."""
        for preset in PRESET_TABLE:
            preset.validate()

    def test_canonical_presets_lists_each_entry_once(self):
        """Test that aliases do not produce duplicate listing rows."""
        listed = canonical_presets(PRESETS)

        assert len(listed) == len(PRESET_TABLE)
        assert [p.name for p in listed] == [p.name for p in PRESET_TABLE]


class TestBuildPresetIndex:
    """Tests for building name indexes."""

    def test_duplicate_name_rejected(self):
        """Test that two entries may not claim the same name."""
        a = Preset(("fast",), 10000, 5, 0.0)
        b = Preset(("slow", "fast"), 100, 500, 1.0)

        with pytest.raises(InvalidValueError):
            build_preset_index([a, b])

    def test_names_are_normalized(self):
        """Test that names are indexed in lower case."""
        index = build_preset_index([Preset(("Office",), 10000, 5, 0.0)])

        assert "office" in index


class TestPresetFromDict:
    """Tests for Preset.from_dict."""

    def test_from_dict(self):
        """Test creating a preset from config data."""
        preset = Preset.from_dict(
            "office",
            {"rate_kbps": 20000, "delay_ms": 5, "loss_pct": 0.1, "aliases": ["hq"]},
        )

        assert preset.names == ("office", "hq")
        assert preset.name == "office"
        assert preset.aliases == ("hq",)
        assert preset.rate_kbps == 20000
        assert preset.delay_ms == 5
        assert preset.loss_pct == 0.1

    def test_from_dict_single_alias_string(self):
        """Test that a single alias may be given as a string."""
        preset = Preset.from_dict("office", {"rate_kbps": 1000, "aliases": "hq"})

        assert preset.names == ("office", "hq")

    def test_from_dict_missing_rate(self):
        """Test that a preset needs a rate."""
        with pytest.raises(InvalidValueError):
            Preset.from_dict("broken", {"delay_ms": 5})

    @pytest.mark.parametrize(
        "data",
        [
            {"rate_kbps": "fast"},
            {"rate_kbps": 0},
            {"rate_kbps": 100, "delay_ms": -1},
            {"rate_kbps": 100, "delay_ms": 2.5},
            {"rate_kbps": 100, "loss_pct": 120},
            {"rate_kbps": float("inf")},
            {"rate_kbps": float("nan")},
            {"rate_kbps": 100, "aliases": [2600]},
            {"rate_kbps": 100, "aliases": ["ok", None]},
        ],
    )
    def test_from_dict_invalid_values(self, data):
        """Test that malformed presets are rejected."""
        with pytest.raises(InvalidValueError):
            Preset.from_dict("broken", data)
