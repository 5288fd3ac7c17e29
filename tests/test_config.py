"""
Tests for runtime configuration loading.
"""

import json

from pixelblit.config import CONFIG_ENV, BlitConfig, ConfigManager


class TestConfigManager:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert ConfigManager(tmp_path / "absent.json").load() == BlitConfig()

    def test_partial_file_overrides_known_keys(self, tmp_path):
        path = tmp_path / "pixelblit.json"
        path.write_text(json.dumps({"batch_size": 128, "start_method": "fork", "unknown": 1}))

        config = ConfigManager(path).load()
        assert config.batch_size == 128
        assert config.start_method == "fork"
        assert config.poll_interval == BlitConfig().poll_interval
        assert not hasattr(config, "unknown")

    def test_broken_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "pixelblit.json"
        path.write_text("{not json")
        assert ConfigManager(path).load() == BlitConfig()

    def test_non_object_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "pixelblit.json"
        path.write_text("[1, 2]")
        assert ConfigManager(path).load() == BlitConfig()

    def test_values_coerced_to_field_types(self, tmp_path):
        path = tmp_path / "pixelblit.json"
        path.write_text(json.dumps({"queue_size": "64", "batch_size": 256.0, "poll_interval": 1}))

        config = ConfigManager(path).load()
        assert config.queue_size == 64 and isinstance(config.queue_size, int)
        assert config.batch_size == 256 and isinstance(config.batch_size, int)
        assert config.poll_interval == 1.0 and isinstance(config.poll_interval, float)

    def test_unconvertible_value_keeps_default(self, tmp_path, caplog):
        path = tmp_path / "pixelblit.json"
        path.write_text(json.dumps({"batch_size": "lots", "join_timeout": None, "queue_size": 8}))

        with caplog.at_level("WARNING"):
            config = ConfigManager(path).load()
        assert config.batch_size == BlitConfig().batch_size
        assert config.join_timeout == BlitConfig().join_timeout
        assert config.queue_size == 8
        assert "batch_size='lots'" in caplog.text

    def test_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "from_env.json"
        monkeypatch.setenv(CONFIG_ENV, str(path))
        assert ConfigManager().config_path == path
