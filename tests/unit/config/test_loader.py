"""
sipmeta — unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate config loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Env var path mapping and type coercion.
- Path normalization relative to the config file.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sipmeta.config.loader import (
    ConfigLoadError,
    dump_effective_config,
    env_name_for_path,
    load_config,
)
from sipmeta.config.schema import ConfigValidationError


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "sipmeta.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config(environ={})

    assert config["batch"]["capacity"] == 1000
    assert config["output"]["dir"] == tmp_path.resolve().as_posix()
    assert config["output"]["content_dir"] == ""
    assert config["logging"]["log_dir"] == ""


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "[output\n")
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(path, environ={})


def test_precedence_cli_over_env_over_file(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
[agency]
id = 1
name = "From file"

[series]
id = 7
""",
    )
    environ = {"SIPMETA_AGENCY_ID": "2", "SIPMETA_AGENCY_NAME": "From env"}

    config = load_config(path, environ=environ, cli_overrides={"agency.id": 3, "agency.name": None})

    assert config["agency"] == {"id": 3, "name": "From env"}
    assert config["series"]["id"] == 7


def test_env_coercion(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "")
    environ = {
        "SIPMETA_ACCESS_PUBLISH": "off",
        "SIPMETA_IDENTIFICATION_BLACKLIST": "fmt/682, x-fmt/111,",
        "SIPMETA_OUTPUT_SAMPLE_SIZE": "5",
    }

    config = load_config(path, environ=environ)

    assert config["access"]["publish"] is False
    assert config["identification"]["blacklist"] == ["fmt/682", "x-fmt/111"]
    assert config["output"]["sample_size"] == 5


def test_env_coercion_errors(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "")
    with pytest.raises(ConfigLoadError, match="SIPMETA_BATCH_CAPACITY"):
        load_config(path, environ={"SIPMETA_BATCH_CAPACITY": "many"})
    with pytest.raises(ConfigLoadError, match="must be a boolean"):
        load_config(path, environ={"SIPMETA_ACCESS_PUBLISH": "perhaps"})


def test_relative_paths_follow_config_file(tmp_path: Path) -> None:
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    path = config_dir / "sipmeta.toml"
    path.write_text('[output]\ndir = "../out"\ncontent_dir = "content"\n', encoding="utf-8")

    config = load_config(path, environ={})

    assert config["output"]["dir"] == (tmp_path / "out").resolve().as_posix()
    assert config["output"]["content_dir"] == (config_dir / "content").resolve().as_posix()


def test_invalid_values_raise_validation_error(tmp_path: Path) -> None:
    path = _write_config(tmp_path, '[access]\nscope = "public"\n')
    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(path, environ={})
    assert [issue.path for issue in excinfo.value.issues] == ["access.scope"]


def test_dump_is_deterministic(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "")
    first = dump_effective_config(load_config(path, environ={}))
    second = dump_effective_config(load_config(path, environ={}))
    assert first == second
    assert json.loads(first)["batch"] == {"capacity": 1000}


def test_env_names() -> None:
    assert env_name_for_path(("output", "sample_size")) == "SIPMETA_OUTPUT_SAMPLE_SIZE"
