"""Tests for executor configuration loading."""

from __future__ import annotations

import textwrap

from gqlexec import ExecutorConfig, load_config
from gqlexec.config import CONFIG_ENV_VAR


class TestExecutorConfig:
    def test_defaults(self):
        config = ExecutorConfig()
        assert config.timeout is None
        assert config.grace_period == 0.1
        assert config.max_depth is None
        assert config.max_batch_size is None
        assert config.internal_error_message == "Internal server error"

    def test_from_section_or_flat_dict(self):
        section = ExecutorConfig.from_dict({"executor": {"timeout": "2.5", "max_depth": 8}})
        flat = ExecutorConfig.from_dict({"timeout": 2.5, "max_depth": "8"})

        assert section == flat
        assert section.timeout == 2.5
        assert section.max_depth == 8

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "gqlexec.yaml"
        config = ExecutorConfig(timeout=5.0, max_batch_size=50, internal_error_message="Oops")

        config.save(path)

        assert load_config(path) == config


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") is None

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text(textwrap.dedent("""
            executor:
              timeout: 1
              grace_period: 0.5
        """))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = load_config()

        assert config.timeout == 1.0
        assert config.grace_period == 0.5

    def test_default_path_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config() is None

        (tmp_path / "gqlexec.yaml").write_text("executor:\n  max_depth: 3\n")
        assert load_config().max_depth == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ExecutorConfig()
