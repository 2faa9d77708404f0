"""Tests for campaign/items.py - campaign item loading."""

import pytest

from entropy_campaign.campaign.items import collect_items, load_items_file
from entropy_campaign.types import ConfigurationError


class TestLoadItemsFile:
    """Tests for load_items_file function."""

    def test_plain_list(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("- entropy.len=1024\n- entropy.len=2048 foo=bar\n")
        assert load_items_file(path) == ["entropy.len=1024", "entropy.len=2048 foo=bar"]

    def test_items_mapping(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("items:\n  - a=1\n  - b=2\n")
        assert load_items_file(path) == ["a=1", "b=2"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("")
        assert load_items_file(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_items_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("items: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_items_file(path)

    def test_scalar_rejected(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("just a string\n")
        with pytest.raises(ConfigurationError, match="Expected a list"):
            load_items_file(path)

    def test_non_string_entry_rejected(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("- a=1\n- 42\n")
        with pytest.raises(ConfigurationError, match="Item 1"):
            load_items_file(path)


class TestCollectItems:
    """Tests for collect_items function."""

    def test_cli_only(self):
        assert collect_items(["a", "b"]) == ["a", "b"]

    def test_cli_then_file(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("- c\n")
        assert collect_items(["a"], path) == ["a", "c"]

    def test_none_given(self):
        with pytest.raises(ConfigurationError, match="No campaign items"):
            collect_items(None)
