"""
Tests for Quill configuration loading.
"""

import json
import textwrap

import pytest

from quill.config import QuillConfig, ConfigError, load_config, CONFIG_ENV_VAR


class TestDefaults:
    """Test default configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = load_config()
        assert config == QuillConfig()
        assert config.prompt == "-> "
        assert config.max_call_depth is None
        assert config.log_level == "WARNING"
        assert config.show_output is True


class TestLoading:
    """Test loading YAML and JSON files."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "quill.yaml"
        path.write_text(textwrap.dedent("""
            prompt: "quill> "
            max_call_depth: 64
            log_level: debug
            show_output: false
        """))
        config = load_config(path)
        assert config.prompt == "quill> "
        assert config.max_call_depth == 64
        assert config.log_level == "DEBUG"
        assert config.show_output is False

    def test_json_file(self, tmp_path):
        path = tmp_path / "quill.json"
        path.write_text(json.dumps({"prompt": ">> ", "max_call_depth": None}))
        config = load_config(str(path))
        assert config.prompt == ">> "
        assert config.max_call_depth is None

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == QuillConfig()

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("prompt: 'env> '\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().prompt == "env> "

    def test_explicit_path_wins_over_environment(self, tmp_path, monkeypatch):
        env_path = tmp_path / "env.yaml"
        env_path.write_text("prompt: 'env> '\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("prompt: 'explicit> '\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))
        assert load_config(explicit).prompt == "explicit> "


class TestValidation:
    """Test rejection of bad configuration."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("colour: blue\n")
        with pytest.raises(ConfigError, match="unknown config key"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("prompt: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid config file"):
            load_config(path)

    @pytest.mark.parametrize("data,message", [
        ({"prompt": 5}, "prompt"),
        ({"max_call_depth": "deep"}, "max_call_depth"),
        ({"max_call_depth": True}, "max_call_depth"),
        ({"max_call_depth": 0}, "positive"),
        ({"log_level": "LOUD"}, "log_level"),
        ({"show_output": "yes"}, "show_output"),
    ])
    def test_bad_values(self, data, message):
        with pytest.raises(ConfigError, match=message):
            QuillConfig.from_dict(data)
