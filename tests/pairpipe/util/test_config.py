"""Tests for pairpipe.util.config module."""
import logging
import pytest
from pydantic import ValidationError
from pairpipe.util.config import (
    PipeSettings, configure_logger, get_config, get_setting, get_settings, parse_key_value_str, reset_config
)


class TestParseKeyValueStr:

    def test_pairs(self):
        assert parse_key_value_str("a:1, b : 2") == {"a": "1", "b": "2"}

    def test_missing_value_defaults_to_last_segment(self):
        assert parse_key_value_str("pairpipe.pipe.fork") == {"pairpipe.pipe.fork": "fork"}

    def test_require_value(self):
        with pytest.raises(ValueError, match="Value required for property 'a'"):
            parse_key_value_str("a", require_value=True)


class TestGetConfig:

    def test_missing_file_gives_empty_config(self):
        assert get_config() == {}

    def test_reads_toml_file(self, isolated_config):
        (isolated_config / ".pairpipe.toml").write_text('shuffle_seed = 5\nlazy_import = true\n')
        config = get_config()
        assert config["shuffle_seed"] == 5
        assert config["lazy_import"] is True

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('logger_levels = "root:INFO"\n')
        assert get_config(path=str(path))["logger_levels"] == "root:INFO"

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        (isolated_config / ".pairpipe.toml").write_text('shuffle_seed = 5\n')
        monkeypatch.setenv("PAIRPIPE_SHUFFLE_SEED", "9")
        assert get_config()["shuffle_seed"] == "9"

    def test_ignore_env(self, monkeypatch):
        monkeypatch.setenv("PAIRPIPE_SOMETHING", "x")
        assert "something" not in get_config(ignore_env=True)

    def test_cached_until_reset(self, monkeypatch):
        assert get_config() == {}
        monkeypatch.setenv("PAIRPIPE_LATE", "1")
        assert "late" not in get_config()
        assert get_config(reload=True)["late"] == "1"
        reset_config()
        assert get_config()["late"] == "1"


class TestSettings:

    def test_defaults(self):
        settings = get_settings()
        assert settings.lazy_import is False
        assert settings.shuffle_seed is None
        assert settings.logger_levels is None

    def test_env_strings_are_coerced(self, monkeypatch):
        monkeypatch.setenv("PAIRPIPE_LAZY_IMPORT", "yes")
        monkeypatch.setenv("PAIRPIPE_SHUFFLE_SEED", "123")
        settings = get_settings()
        assert settings.lazy_import is True
        assert settings.shuffle_seed == 123

    def test_unknown_keys_are_kept(self, monkeypatch):
        monkeypatch.setenv("PAIRPIPE_MY_PLUGIN_OPTION", "on")
        assert get_settings().my_plugin_option == "on"

    def test_single_setting_ignores_other_keys(self, monkeypatch):
        monkeypatch.setenv("PAIRPIPE_LAZY_IMPORT", "enabled")
        monkeypatch.setenv("PAIRPIPE_SHUFFLE_SEED", "11")
        assert get_setting("shuffle_seed") == 11
        with pytest.raises(ValidationError):
            get_settings()

    def test_single_setting_default_and_error(self, monkeypatch):
        assert get_setting("lazy_import") is False
        monkeypatch.setenv("PAIRPIPE_LAZY_IMPORT", "enabled")
        with pytest.raises(ValidationError):
            get_setting("lazy_import", reload=True)

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            PipeSettings.model_validate({"shuffle_seed": "not a number"})


class TestConfigureLogger:

    def test_levels_from_argument(self):
        configure_logger("pairpipe.test_a:DEBUG")
        target = logging.getLogger("pairpipe.test_a")
        assert target.level == logging.DEBUG
        assert len(target.handlers) == 1

    def test_levels_from_config(self, monkeypatch):
        monkeypatch.setenv("PAIRPIPE_LOGGER_LEVELS", "pairpipe.test_b:ERROR")
        configure_logger()
        assert logging.getLogger("pairpipe.test_b").level == logging.ERROR

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "pipe.log"
        configure_logger("pairpipe.test_c:INFO", logger_files=f"pairpipe.test_c:{log_file}")
        target = logging.getLogger("pairpipe.test_c")
        try:
            target.info("hello file")
            for handler in target.handlers:
                handler.flush()
            assert "hello file" in log_file.read_text()
        finally:
            for handler in list(target.handlers):
                handler.close()
                target.removeHandler(handler)
