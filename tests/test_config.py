"""
Tests for localiser configuration
"""

import pytest
import yaml

from inkloc.config import (
    LocaliserConfig,
    find_config_file,
    get_localiser_config,
    load_config,
    save_config,
    set_localiser_config,
)


class TestLocaliserConfig:
    def test_defaults(self):
        config = LocaliserConfig()
        assert config.retag_all is False
        assert config.debug_output_suffix is True
        assert config.output_suffix == ".txt"
        assert config.id_suffix_length == 4
        assert config.unique_ids is False

    def test_invalid_values_clamped(self):
        config = LocaliserConfig(id_suffix_length=0, max_id_attempts=-2)
        assert config.id_suffix_length == 4
        assert config.max_id_attempts == 1

    def test_empty_suffix_in_debug_mode(self):
        assert LocaliserConfig(output_suffix="").output_suffix == ".txt"

    def test_dict_roundtrip(self):
        config = LocaliserConfig(retag_all=True, seed=5, json_output="out.json")
        assert LocaliserConfig.from_dict(config.to_dict()) == config

    def test_output_section(self):
        config = LocaliserConfig.from_dict({"output": {"json": "s.json", "csv": "s.csv"}})
        assert config.json_output == "s.json"
        assert config.csv_output == "s.csv"


class TestLoadConfig:
    def test_from_yaml(self, temp_dir):
        path = temp_dir / "inkloc.yaml"
        path.write_text(yaml.safe_dump({"retag_all": True, "output_suffix": ".new"}), encoding="utf-8")
        config = load_config(path)
        assert config.retag_all is True
        assert config.output_suffix == ".new"

    def test_missing_file_gives_defaults(self, temp_dir):
        assert load_config(temp_dir / "absent.yaml") == LocaliserConfig()

    def test_bad_yaml_gives_defaults(self, temp_dir):
        path = temp_dir / "inkloc.yaml"
        path.write_text("retag_all: [unclosed", encoding="utf-8")
        assert load_config(path).retag_all is False

    def test_env_overrides(self, temp_dir, monkeypatch):
        monkeypatch.setenv("INKLOC_RETAG_ALL", "yes")
        monkeypatch.setenv("INKLOC_DEBUG_OUTPUT", "false")
        monkeypatch.setenv("INKLOC_SEED", "11")
        config = load_config(temp_dir / "absent.yaml")
        assert config.retag_all is True
        assert config.debug_output_suffix is False
        assert config.seed == 11

    def test_bad_seed_ignored(self, temp_dir, monkeypatch):
        monkeypatch.setenv("INKLOC_SEED", "abc")
        assert load_config(temp_dir / "absent.yaml").seed is None

    def test_save_and_reload(self, temp_dir):
        path = save_config(LocaliserConfig(unique_ids=True), temp_dir / "cfg" / "inkloc.yaml")
        assert load_config(path).unique_ids is True


class TestFindConfig:
    def test_found_upward(self, temp_dir):
        (temp_dir / "inkloc.yaml").write_text("{}", encoding="utf-8")
        nested = temp_dir / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == temp_dir / "inkloc.yaml"

    def test_hidden_folder(self, temp_dir):
        (temp_dir / ".inkloc").mkdir()
        (temp_dir / ".inkloc" / "inkloc.yaml").write_text("{}", encoding="utf-8")
        assert find_config_file(temp_dir) == temp_dir / ".inkloc" / "inkloc.yaml"


class TestGlobalConfig:
    def test_set_and_get(self):
        previous = get_localiser_config()
        try:
            custom = LocaliserConfig(retag_all=True)
            set_localiser_config(custom)
            assert get_localiser_config() is custom
        finally:
            set_localiser_config(previous)
