"""Tests for layout configuration."""

import pytest

from config import LayoutConfig


class TestDerivedValues:
    def test_row_height_defaults_to_box_height(self):
        assert LayoutConfig().row_height == 80

    def test_row_height_uses_family_distances(self):
        config = LayoutConfig(family_to_parent_distance=10, family_to_children_distance=30)
        assert config.row_height == 40

    def test_ancestor_depth_falls_back_to_backward_window(self):
        assert LayoutConfig(max_generations_backward=3).ancestor_depth == 3
        assert LayoutConfig(max_generations_backward=3, max_ancestors=6).ancestor_depth == 6


class TestValidation:
    def test_defaults_are_valid(self):
        config = LayoutConfig()
        assert config.errors() == []
        assert config.validate() is config

    @pytest.mark.parametrize(
        "field,value",
        [
            ("sibling_gap", -1),
            ("box_width", float("nan")),
            ("parent_gap", "20"),
            ("max_generations_forward", True),
            ("max_ancestors", -2),
        ],
    )
    def test_bad_values(self, field, value):
        config = LayoutConfig(**{field: value})
        assert config.errors() == [f"{field} must be a non-negative number"]
        with pytest.raises(ValueError, match=field):
            config.validate()

    def test_optional_fields_may_be_unset(self):
        assert LayoutConfig(family_to_parent_distance=None, max_ancestors=None).errors() == []

    def test_unbounded_window_allowed(self):
        assert LayoutConfig(max_generations_forward=float("inf")).errors() == []
