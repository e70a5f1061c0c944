"""Unit tests for JSON configuration loading."""

from __future__ import annotations

import json

import pytest

from aspupath.base import PathwayConfig
from aspupath.config import load_config


@pytest.mark.unit
class TestLoadConfig:
    def test_packaged_defaults(self):
        cfg = load_config()
        assert cfg["pow"] == [1, 2, 3, 4, 5, 6, 7, 8]
        assert cfg["n_perm"] == 200
        assert cfg["model"] == "binomial"
        assert cfg["seed"] is None

    def test_packaged_defaults_match_dataclass(self):
        assert PathwayConfig.from_dict(load_config()) == PathwayConfig()

    def test_user_file_overrides_only_its_keys(self, tmp_path):
        user = tmp_path / "user.json"
        user.write_text(json.dumps({"n_perm": 1000, "pow": [1, "inf"]}))
        cfg = load_config(str(user))
        assert cfg["n_perm"] == 1000
        assert cfg["pow"] == [1, "inf"]
        assert cfg["model"] == "binomial"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(str(tmp_path / "nope.json"))

    def test_malformed_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{ not json")
        with pytest.raises(ValueError, match="Error parsing JSON"):
            load_config(str(bad))
