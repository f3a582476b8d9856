from __future__ import annotations

from pathlib import Path

import pytest

from servicectl.config import parse_overrides, resolve_config, seed_env_file
from servicectl.errors import ConfigError


def test_defaults_without_env_file(tmp_path: Path) -> None:
    cfg = resolve_config(tmp_path, environ={})
    assert cfg.service == "service"
    assert cfg.port == 8000
    assert cfg.service_url == "http://localhost:8000"
    assert cfg.image_id == "service.img"
    assert cfg.build_container == "service.img"
    assert cfg.base_image == "python:3.10"
    assert cfg.build_cmd == "make init && make setup"
    assert cfg.run_cmd == "make run"
    assert cfg.root_dir == tmp_path.resolve()
    assert cfg.source_dir == tmp_path.resolve() / "src"
    assert cfg.service_dir == tmp_path.resolve() / "src" / "service"
    assert cfg.env_file == tmp_path.resolve() / ".env"
    assert cfg.ephemeral_archives == ()


def test_env_file_drives_derived_values(cfg) -> None:
    assert cfg.service == "web"
    assert cfg.port == 8080
    assert cfg.service_url == "http://localhost:8080"
    assert cfg.image_id == "web.img"
    assert cfg.service_dir.name == "web"
    assert cfg.as_env()["DEBUG"] == "1"
    assert cfg.as_env()["IMAGE_ID"] == "web.img"


def test_precedence_environ_then_file_then_overrides(project: Path) -> None:
    environ = {"SERVICE": "from-env", "PORT": "9000", "IMAGE_ID": "env.img", "UNRELATED": "x"}

    cfg = resolve_config(project, environ=environ)
    assert cfg.service == "web"          # env file beats environ
    assert cfg.port == 8080
    assert cfg.image_id == "env.img"     # not set in the file
    assert "UNRELATED" not in cfg.variables

    cfg = resolve_config(project, {"PORT": "7000"}, environ=environ)
    assert cfg.port == 7000
    assert cfg.service_url == "http://localhost:7000"


def test_env_file_location_can_be_overridden(project: Path) -> None:
    (project / "alt.env").write_text("SERVICE=api\n", encoding="utf-8")
    cfg = resolve_config(project, {"ENV_FILE": "alt.env"}, environ={})
    assert cfg.service == "api"
    assert cfg.env_file == project.resolve() / "alt.env"


def test_env_file_follows_root_dir_override(project: Path, tmp_path: Path) -> None:
    other = tmp_path / "other"
    other.mkdir()
    (other / ".env").write_text("SERVICE=api\n", encoding="utf-8")

    cfg = resolve_config(project, {"ROOT_DIR": str(other)}, environ={})

    assert cfg.root_dir == other.resolve()
    assert cfg.env_file == other.resolve() / ".env"
    assert cfg.service == "api"


def test_ephemeral_archives_are_shell_split(tmp_path: Path) -> None:
    cfg = resolve_config(tmp_path, {"EPHEMERAL_ARCHIVES": "build dist 'my dir'"}, environ={})
    assert cfg.ephemeral_archives == ("build", "dist", "my dir")


def test_config_is_immutable(cfg) -> None:
    with pytest.raises(Exception):
        cfg.service = "other"
    with pytest.raises(TypeError):
        cfg.variables["SERVICE"] = "other"


@pytest.mark.parametrize("port", ["http", "0", "70000"])
def test_invalid_port(tmp_path: Path, port: str) -> None:
    with pytest.raises(ConfigError):
        resolve_config(tmp_path, {"PORT": port}, environ={})


def test_parse_overrides() -> None:
    assert parse_overrides(["PORT=1", "RUN_CMD=make run --fast", "EMPTY="]) == {
        "PORT": "1",
        "RUN_CMD": "make run --fast",
        "EMPTY": "",
    }
    with pytest.raises(ConfigError):
        parse_overrides(["PORT"])
    with pytest.raises(ConfigError):
        parse_overrides(["=1"])


def test_seed_env_file_from_template(tmp_path: Path) -> None:
    (tmp_path / ".env.example").write_text("SERVICE=seeded\n", encoding="utf-8")
    cfg = resolve_config(tmp_path, environ={})

    assert seed_env_file(cfg) is True
    assert (tmp_path / ".env").read_text(encoding="utf-8") == "SERVICE=seeded\n"
    assert seed_env_file(cfg) is False


def test_seed_env_file_keeps_existing(project: Path) -> None:
    cfg = resolve_config(project, environ={})
    assert seed_env_file(cfg) is False
    assert "SERVICE=web" in (project / ".env").read_text(encoding="utf-8")


def test_seed_env_file_without_template(tmp_path: Path) -> None:
    cfg = resolve_config(tmp_path, environ={})
    with pytest.raises(ConfigError):
        seed_env_file(cfg)
