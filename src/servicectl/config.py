"""Service configuration: defaults, environment file and caller overrides."""

from __future__ import annotations

import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .errors import ConfigError


DEFAULT_ENV_FILE = ".env"
TEMPLATE_SUFFIX = ".example"

# Keys picked up from the process environment. Anything else in os.environ
# is left alone; the env file and overrides may add arbitrary keys.
KNOWN_KEYS = (
    "SERVICE",
    "PORT",
    "SERVICE_URL",
    "IMAGE_ID",
    "BUILD_CONTAINER",
    "BASE_IMAGE",
    "BUILD_CMD",
    "RUN_CMD",
    "FINISH_CMD",
    "ROOT_DIR",
    "SOURCE_DIR",
    "SERVICE_DIR",
    "ENV_FILE",
    "EPHEMERAL_ARCHIVES",
    "GIT",
    "DOCKER",
)


@dataclass(frozen=True)
class ServiceConfig:
    """
    Immutable configuration shared read-only by every component.

    `variables` holds every merged key/value; it is exported to shell
    commands the same way the resolved fields are.
    """
    service: str
    port: int
    service_url: str
    image_id: str
    build_container: str
    base_image: str
    build_cmd: str
    run_cmd: str
    finish_cmd: str
    root_dir: Path
    source_dir: Path
    service_dir: Path
    env_file: Path
    ephemeral_archives: Tuple[str, ...] = ()
    git: str = "git"
    docker: str = "docker"
    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def env_template(self) -> Path:
        return self.env_file.with_name(self.env_file.name + TEMPLATE_SUFFIX)

    def as_env(self) -> Dict[str, str]:
        return dict(self.variables)


def parse_overrides(pairs) -> Dict[str, str]:
    """Turn ["KEY=value", ...] into a dict. Raises ConfigError on malformed pairs."""
    overrides: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Override must look like KEY=value, got: {pair!r}")
        overrides[key] = value
    return overrides


def _read_env_file(path: Path) -> Dict[str, str]:
    if not path.is_file():
        return {}
    # dotenv yields None for bare keys without "="
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def _under(root: Path, value: str | Path) -> Path:
    return (root / Path(value).expanduser()).resolve()


def resolve_config(
    root_dir: str | Path = ".",
    overrides: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServiceConfig:
    """
    Merge defaults < environ (known keys) < env file < overrides.

    The env file location itself comes from overrides, then environ, then
    the `.env` default. It is relative to ROOT_DIR when overrides or environ
    set one, otherwise to root_dir. A ROOT_DIR inside the env file cannot
    move the env file.
    """
    root = Path(root_dir).expanduser().resolve()
    overrides = dict(overrides or {})
    environ = environ or {}

    root_hint = overrides.get("ROOT_DIR") or environ.get("ROOT_DIR")
    env_base = _under(root, root_hint) if root_hint else root
    env_name = overrides.get("ENV_FILE") or environ.get("ENV_FILE") or DEFAULT_ENV_FILE
    env_file = _under(env_base, env_name)

    merged: Dict[str, str] = {k: environ[k] for k in KNOWN_KEYS if k in environ}
    merged.update(_read_env_file(env_file))
    merged.update(overrides)

    service = merged.get("SERVICE", "service")
    raw_port = merged.get("PORT", "8000")
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got: {raw_port!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")

    root_dir_p = _under(root, merged.get("ROOT_DIR", root))
    source_dir = _under(root_dir_p, merged.get("SOURCE_DIR", root_dir_p / "src"))
    service_dir = _under(source_dir, merged.get("SERVICE_DIR", source_dir / service))
    image_id = merged.get("IMAGE_ID", f"{service}.img")

    resolved = {
        "SERVICE": service,
        "PORT": str(port),
        "SERVICE_URL": merged.get("SERVICE_URL", f"http://localhost:{port}"),
        "IMAGE_ID": image_id,
        "BUILD_CONTAINER": merged.get("BUILD_CONTAINER", image_id),
        "BASE_IMAGE": merged.get("BASE_IMAGE", "python:3.10"),
        "BUILD_CMD": merged.get("BUILD_CMD", "make init && make setup"),
        "RUN_CMD": merged.get("RUN_CMD", "make run"),
        "FINISH_CMD": merged.get("FINISH_CMD", "make finish"),
        "ROOT_DIR": str(root_dir_p),
        "SOURCE_DIR": str(source_dir),
        "SERVICE_DIR": str(service_dir),
        "ENV_FILE": str(env_file),
        "EPHEMERAL_ARCHIVES": merged.get("EPHEMERAL_ARCHIVES", ""),
        "GIT": merged.get("GIT", "git"),
        "DOCKER": merged.get("DOCKER", "docker"),
    }
    variables = {**merged, **resolved}

    return ServiceConfig(
        service=service,
        port=port,
        service_url=resolved["SERVICE_URL"],
        image_id=image_id,
        build_container=resolved["BUILD_CONTAINER"],
        base_image=resolved["BASE_IMAGE"],
        build_cmd=resolved["BUILD_CMD"],
        run_cmd=resolved["RUN_CMD"],
        finish_cmd=resolved["FINISH_CMD"],
        root_dir=root_dir_p,
        source_dir=source_dir,
        service_dir=service_dir,
        env_file=env_file,
        ephemeral_archives=tuple(shlex.split(resolved["EPHEMERAL_ARCHIVES"])),
        git=resolved["GIT"],
        docker=resolved["DOCKER"],
        variables=MappingProxyType(variables),
    )


def seed_env_file(cfg: ServiceConfig) -> bool:
    """Copy `<env_file>.example` to the env file if it is missing."""
    if cfg.env_file.exists():
        return False
    template = cfg.env_template
    if not template.is_file():
        raise ConfigError(f"Cannot seed {cfg.env_file.name}: template not found: {template}")
    shutil.copyfile(template, cfg.env_file)
    return True
