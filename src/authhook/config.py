"""Configuration management with XDG paths, atomic writes, and credential sources.

This module handles all persistent configuration for authhook:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.authhook/`` on macOS and Windows. See :func:`get_config_dir`.
* **Registry file** -- a single :class:`~authhook.models.RegistryConfig`
  document listing destinations and their credentials. JSON by default,
  YAML when the file name ends in ``.yaml`` or ``.yml``. The path can be
  overridden with the ``AUTHHOOK_REGISTRY`` environment variable or the
  ``--registry`` CLI flag. See :func:`registry_path`.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml

from authhook.exceptions import ConfigError
from authhook.models import RegistryConfig

_APP_NAME = "authhook"
_REGISTRY_FILENAME = "destinations.json"
REGISTRY_ENV_VAR = "AUTHHOOK_REGISTRY"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/authhook/`` (default ``~/.config/authhook/``).
    On macOS/Windows: ``~/.authhook/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def registry_path(override: Optional[str] = None) -> Path:
    """Return the registry file path.

    Precedence: *override* (the ``--registry`` flag), then the
    ``AUTHHOOK_REGISTRY`` environment variable, then
    ``<config dir>/destinations.json``.
    """
    if override:
        return Path(override).expanduser()
    env_value = os.environ.get(REGISTRY_ENV_VAR, "")
    if env_value:
        return Path(env_value).expanduser()
    return get_config_dir() / _REGISTRY_FILENAME


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. The file is created
    with ``0o600`` permissions since the registry may name secret files.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, 0o600)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Registry file ---


def load_registry_config(path: Optional[Path] = None) -> RegistryConfig:
    """Load the registry configuration.

    Args:
        path: Registry file to read. Defaults to :func:`registry_path`.

    Returns:
        The deserialised :class:`~authhook.models.RegistryConfig`. If the
        file does not exist, an empty registry is returned.

    Raises:
        ConfigError: If the file exists but cannot be parsed or fails
            Pydantic validation.
    """
    path = path or registry_path()
    if not path.is_file():
        return RegistryConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data: Any
        if _is_yaml(path):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
        return RegistryConfig.model_validate(data)
    except (json.JSONDecodeError, yaml.YAMLError, ValueError) as exc:
        raise ConfigError(f"Invalid registry file at {path}: {exc}") from exc


def save_registry_config(config: RegistryConfig, path: Optional[Path] = None) -> Path:
    """Persist the registry configuration atomically.

    Args:
        config: The registry to save.
        path: Target file. Defaults to :func:`registry_path`.

    Returns:
        The path written to.
    """
    path = path or registry_path()
    data = config.model_dump(mode="json")
    if _is_yaml(path):
        text = yaml.safe_dump(data, sort_keys=False)
    else:
        text = json.dumps(data, indent=2) + "\n"
    _atomic_write(path, text)
    return path


# --- Credential resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")
