"""Tests for configuration helpers."""

from reqtree import config


class TestEnvInt:
    """Test integer settings read from the environment."""

    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv("REQTREE_DISPLAY_OFFSET", raising=False)
        assert config._env_int("REQTREE_DISPLAY_OFFSET", 1) == 1

    def test_valid_value(self, monkeypatch):
        monkeypatch.setenv("REQTREE_DISPLAY_OFFSET", " 0 ")
        assert config._env_int("REQTREE_DISPLAY_OFFSET", 1) == 0

    def test_malformed_value_falls_back(self, monkeypatch):
        """Test a bad value warns instead of failing at import."""
        monkeypatch.setenv("REQTREE_DISPLAY_OFFSET", "one")
        messages = []
        handler = config.logger.add(messages.append, level="WARNING")
        try:
            assert config._env_int("REQTREE_DISPLAY_OFFSET", 1) == 1
        finally:
            config.logger.remove(handler)
        assert any("REQTREE_DISPLAY_OFFSET" in str(m) for m in messages)


class TestEnvBool:
    """Test boolean settings read from the environment."""

    def test_truthy_and_falsy(self, monkeypatch):
        monkeypatch.setenv("REQTREE_SYNTHESIZE_PARENTS", "yes")
        assert config._env_bool("REQTREE_SYNTHESIZE_PARENTS") is True
        monkeypatch.setenv("REQTREE_SYNTHESIZE_PARENTS", "nope")
        assert config._env_bool("REQTREE_SYNTHESIZE_PARENTS") is False


class TestLoadYaml:
    """Test YAML loading."""

    def test_missing_file_is_empty(self, tmp_path):
        assert config.Config.load_yaml(tmp_path / "missing.yaml") == {}
