"""
Tests for the YAML config loader.
"""

import logging

import pytest

from boulderbody.core.config_loader import AppConfig, _deep_merge, load_app_config, load_bundled_config


class TestConfigLoader:
    def test_bundled_defaults(self):
        raw = load_bundled_config()
        assert raw["volume"]["max_level"] is None
        assert raw["timer"]["rest_seconds"] == 180

    def test_defaults_without_data_dir(self):
        cfg = load_app_config()
        assert cfg == AppConfig()
        assert cfg.max_level is None
        assert (cfg.prep_seconds, cfg.hang_seconds, cfg.rest_seconds) == (5, 7, 180)

    def test_missing_user_file(self, tmp_path):
        assert load_app_config(tmp_path) == AppConfig()

    def test_user_override_merges(self, tmp_path):
        (tmp_path / "config.yaml").write_text("volume:\n  max_level: 12\ntimer:\n  rest_seconds: 120\n")
        cfg = load_app_config(tmp_path)
        assert cfg.max_level == 12
        assert cfg.rest_seconds == 120
        assert cfg.hang_seconds == 7

    def test_empty_user_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("")
        assert load_app_config(tmp_path) == AppConfig()

    @pytest.mark.parametrize(
        "text",
        [
            "volume: [unclosed",
            "- just\n- a list\n",
            "volume:\n  max_level: 0\n",
            "timer:\n  hang_seconds: -1\n",
            "volume: 5\n",
            "timer: fast\n",
        ],
    )
    def test_invalid_user_file_ignored(self, tmp_path, caplog, text):
        (tmp_path / "config.yaml").write_text(text)
        with caplog.at_level(logging.WARNING):
            cfg = load_app_config(tmp_path)
        assert cfg == AppConfig()
        assert "Ignoring invalid config file" in caplog.text

    def test_deep_merge_is_non_destructive(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        merged = _deep_merge(base, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}
        assert base["a"]["y"] == 2
