"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

from threadkeeper.config import default_store_path, load_config, resolve_store_path


class TestResolveStorePath:
    def test_default_under_home(self, tmp_path: Path):
        path = resolve_store_path()
        assert path == tmp_path / "home" / ".threadkeeper" / "notes.jsonl"
        assert path == default_store_path()

    def test_env_override_absolute(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("THREADKEEPER_STORE_PATH", "rel/notes.jsonl")
        path = resolve_store_path()
        assert path.is_absolute()
        assert path == (tmp_path / "rel" / "notes.jsonl").resolve()

    def test_empty_env_ignored(self, monkeypatch):
        monkeypatch.setenv("THREADKEEPER_STORE_PATH", "")
        assert resolve_store_path() == default_store_path()

    def test_env_beats_configured(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("THREADKEEPER_STORE_PATH", str(tmp_path / "env.jsonl"))
        assert resolve_store_path(str(tmp_path / "toml.jsonl")) == (tmp_path / "env.jsonl").resolve()


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config()
        assert cfg.store_path == default_store_path()
        assert cfg.log_level == "WARNING"
        assert cfg.instructions_path is None
        assert cfg.config_file is None
        assert cfg.read_instructions() is None

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "config.toml"
        toml_path.write_text(f"""
log_level = "DEBUG"

[store]
path = "{tmp_path / 'custom.jsonl'}"

[server]
instructions = "{tmp_path / 'AGENTS.md'}"
""")
        (tmp_path / "AGENTS.md").write_text("contract", encoding="utf-8")
        cfg = load_config(toml_path)
        assert cfg.store_path == (tmp_path / "custom.jsonl").resolve()
        assert cfg.log_level == "DEBUG"
        assert cfg.read_instructions() == "contract"
        assert cfg.config_file == toml_path

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        toml_path = tmp_path / "config.toml"
        toml_path.write_text('log_level = "DEBUG"\n[store]\npath = "/tmp/from-toml.jsonl"\n')
        monkeypatch.setenv("THREADKEEPER_STORE_PATH", str(tmp_path / "env.jsonl"))
        monkeypatch.setenv("THREADKEEPER_LOG_LEVEL", "ERROR")
        cfg = load_config(toml_path)
        assert cfg.store_path == (tmp_path / "env.jsonl").resolve()
        assert cfg.log_level == "ERROR"

    def test_config_env_var(self, tmp_path: Path, monkeypatch):
        toml_path = tmp_path / "elsewhere.toml"
        toml_path.write_text('log_level = "INFO"\n')
        monkeypatch.setenv("THREADKEEPER_CONFIG", str(toml_path))
        assert load_config().log_level == "INFO"

    def test_home_config_file(self, tmp_path: Path):
        app = tmp_path / "home" / ".threadkeeper"
        app.mkdir(parents=True)
        (app / "config.toml").write_text('log_level = "INFO"\n')
        assert load_config().config_file == app / "config.toml"

    def test_missing_explicit_file_uses_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.config_file is None
        assert cfg.store_path == default_store_path()

    def test_unreadable_instructions(self, tmp_path: Path):
        toml_path = tmp_path / "config.toml"
        toml_path.write_text(f'[server]\ninstructions = "{tmp_path / "missing.md"}"\n')
        assert load_config(toml_path).read_instructions() is None
