"""Tests for configuration loading."""

from revguard_core.config import DEFAULT_CONFIG, get_limit, load_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "anthropic"
    assert config["max_search_chars"] == 5000
    assert config["max_replace_chars"] == 10000
    assert config["preview_chars"] == 200
    assert config["repo_map_limit"] == 300
    assert config["mention"] == "@devwif"


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".revguard.yml"
    cfg.write_text("model: openai\nmax_search_chars: 100\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "openai"
    assert config["max_search_chars"] == 100
    assert config["max_replace_chars"] == 10000


def test_empty_config_file_keeps_defaults(tmp_path):
    cfg = tmp_path / ".revguard.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "anthropic"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".revguard.yml"
    cfg.write_text("model: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "anthropic"})
    assert config["model"] == "anthropic"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".revguard.yml"
    cfg.write_text("model: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "openai"


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


def test_defaults_are_not_mutated(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config["preview_chars"] = 5
    assert DEFAULT_CONFIG["preview_chars"] == 200


class TestGetLimit:
    def test_falls_back_to_default_without_config(self):
        assert get_limit(None, "max_search_chars") == 5000

    def test_reads_value_from_config(self):
        assert get_limit({"max_search_chars": 10}, "max_search_chars") == 10

    def test_none_value_uses_default(self):
        assert get_limit({"preview_chars": None}, "preview_chars") == 200

    def test_string_value_is_coerced(self):
        assert get_limit({"repo_map_limit": "50"}, "repo_map_limit") == 50
