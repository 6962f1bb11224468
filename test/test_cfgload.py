#!/usr/bin/env python3
"""Tests for config loading, discovery and validation."""
import sys

import pytest
import yaml

from canonfts import cfgload


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with no discoverable config: empty cwd, empty home, no env var."""
    monkeypatch.delenv(cfgload.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadConfig:
    def test_defaults_without_file(self, isolated):
        config = cfgload.load_config()
        assert config["edition"]["id"] == "bjt"
        assert config["indexing"]["languages"] == ["pali", "sinh"]
        assert config["tokenizer"]["tokenchar_ranges"] == [[0x0D80, 0x0DFF]]

    def test_defaults_not_shared(self, isolated):
        config = cfgload.load_config()
        config["indexing"]["languages"].append("eng")
        assert cfgload.load_config()["indexing"]["languages"] == ["pali", "sinh"]

    def test_deep_merge(self, isolated):
        path = isolated / "custom.yaml"
        path.write_text("indexing:\n  batch_size: 500\nedition:\n  id: pts\n", encoding="utf-8")
        config = cfgload.load_config(path)
        assert config["indexing"]["batch_size"] == 500
        assert config["indexing"]["default_type"] == "paragraph"
        assert config["edition"] == {"id": "pts", "name": "Buddha Jayanti Tripitaka"}

    def test_empty_file_gives_defaults(self, isolated):
        path = isolated / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert cfgload.load_config(path)["paths"]["output_db"] == "./assets/databases/bjt-fts.db"

    def test_cwd_config_discovered(self, isolated):
        (isolated / "config.yaml").write_text("edition:\n  id: cwd\n", encoding="utf-8")
        assert cfgload.load_config()["edition"]["id"] == "cwd"

    def test_home_config_discovered(self, isolated):
        home_config = isolated / "home" / ".config" / "canonfts" / "config.yaml"
        home_config.parent.mkdir(parents=True)
        home_config.write_text("edition:\n  id: home\n", encoding="utf-8")
        assert cfgload.load_config()["edition"]["id"] == "home"

    def test_env_var_beats_cwd(self, isolated, monkeypatch):
        (isolated / "config.yaml").write_text("edition:\n  id: cwd\n", encoding="utf-8")
        env_config = isolated / "env.yaml"
        env_config.write_text("edition:\n  id: env\n", encoding="utf-8")
        monkeypatch.setenv(cfgload.CONFIG_ENV_VAR, str(env_config))
        assert cfgload.load_config()["edition"]["id"] == "env"

    def test_env_var_missing_file(self, isolated, monkeypatch):
        monkeypatch.setenv(cfgload.CONFIG_ENV_VAR, str(isolated / "nope.yaml"))
        with pytest.raises(cfgload.ConfigError, match="missing file"):
            cfgload.load_config()

    def test_explicit_missing_file(self, isolated):
        with pytest.raises(cfgload.ConfigError, match="not found"):
            cfgload.load_config(isolated / "nope.yaml")

    def test_invalid_yaml(self, isolated):
        path = isolated / "bad.yaml"
        path.write_text("indexing: [unclosed\n", encoding="utf-8")
        with pytest.raises(cfgload.ConfigError, match="Invalid YAML"):
            cfgload.load_config(path)

    def test_top_level_not_mapping(self, isolated):
        path = isolated / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(cfgload.ConfigError, match="mapping"):
            cfgload.load_config(path)


class TestValidateConfig:
    def _config(self, isolated, text):
        path = isolated / "c.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    @pytest.mark.parametrize("text", [
        "edition:\n  id: 'bjt-fts'\n",
        "edition:\n  id: '1bjt'\n",
        "edition:\n  id: ''\n",
    ])
    def test_invalid_edition_id(self, isolated, text):
        with pytest.raises(cfgload.ConfigError, match="edition.id"):
            cfgload.load_config(self._config(isolated, text))

    @pytest.mark.parametrize("value", ["-1", "true", "'10'", "1.5"])
    def test_invalid_batch_size(self, isolated, value):
        with pytest.raises(cfgload.ConfigError, match="batch_size"):
            cfgload.load_config(self._config(isolated, f"indexing:\n  batch_size: {value}\n"))

    @pytest.mark.parametrize("value", ["[]", "['pali', 3]", "['']"])
    def test_invalid_languages(self, isolated, value):
        with pytest.raises(cfgload.ConfigError, match="languages"):
            cfgload.load_config(self._config(isolated, f"indexing:\n  languages: {value}\n"))

    @pytest.mark.parametrize("value", ["[[1]]", "[[5, 1]]", "[['a', 'b']]"])
    def test_invalid_tokenchar_ranges(self, isolated, value):
        with pytest.raises(cfgload.ConfigError, match="tokenchar_ranges"):
            cfgload.load_config(
                self._config(isolated, f"tokenizer:\n  tokenchar_ranges: {value}\n")
            )


class TestHelpers:
    def test_get_dotted_key(self):
        config = {"a": {"b": {"c": 1}}}
        assert cfgload.get(config, "a.b.c") == 1
        assert cfgload.get(config, "a.x", "fallback") == "fallback"
        assert cfgload.get(config, "a.b.c.d") is None

    def test_dump_defaults_round_trips(self, isolated):
        dumped = yaml.safe_load(cfgload.dump_defaults())
        assert dumped == cfgload.load_config()


if __name__ == "__main__":
    sys.exit(pytest.main(["-v", __file__]))
