"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for notion-oauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.notion-oauth/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **User config** -- A single :class:`~notion_oauth.models.NotionOAuthConfig`
  JSON file. See :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and user config into the
  final effective configuration.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  env vars, files, or inline literals; :func:`resolve_credentials` turns a
  config into the immutable :class:`~notion_oauth.models.ClientCredentials`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from notion_oauth.exceptions import ConfigError
from notion_oauth.models import ClientCredentials, NotionOAuthConfig

_APP_NAME = "notion-oauth"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "notion-oauth.json"

ENV_CLIENT_ID = "NOTION_OAUTH_CLIENT_ID"
ENV_CLIENT_SECRET = "NOTION_OAUTH_CLIENT_SECRET"
ENV_CALLBACK_URL = "NOTION_OAUTH_CALLBACK_URL"
ENV_STATE_MODE = "NOTION_OAUTH_STATE_MODE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/notion-oauth/`` (default
    ``~/.config/notion-oauth/``). On macOS/Windows: ``~/.notion-oauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the nonce store used in nonce state mode. Entries are short-lived
    and the directory can be deleted at any time.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary."""
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
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
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
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


# --- User config ---


def config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_config() -> NotionOAuthConfig:
    """Load the user configuration from the XDG config directory.

    Returns:
        The deserialised config, or a default instance when the file does
        not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = config_path()
    if not path.is_file():
        return NotionOAuthConfig()
    data = _read_json(path, "config")
    try:
        return NotionOAuthConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: NotionOAuthConfig) -> Path:
    """Persist the user configuration atomically and return its path."""
    path = config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./notion-oauth.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(**cli_overrides: Any) -> NotionOAuthConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (keyword arguments; ``None`` values are ignored;
           ``host`` and ``port`` land in the ``server`` section)
        2. Environment variables (``NOTION_OAUTH_CLIENT_ID``,
           ``NOTION_OAUTH_CLIENT_SECRET``, ``NOTION_OAUTH_CALLBACK_URL``,
           ``NOTION_OAUTH_STATE_MODE``)
        3. Project config (``./notion-oauth.json``)
        4. User config (``~/.config/notion-oauth/config.json``)
        5. Defaults

    The client id and secret variables are recorded as ``env:`` sources so
    the secret itself never ends up in a serialised config.

    Raises:
        ConfigError: If any layer fails validation.
    """
    # 5 + 4
    data = load_config().model_dump(mode="json")

    # 3
    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    # 2
    if os.environ.get(ENV_CLIENT_ID):
        data["client_id_source"] = f"env:{ENV_CLIENT_ID}"
    if os.environ.get(ENV_CLIENT_SECRET):
        data["client_secret_source"] = f"env:{ENV_CLIENT_SECRET}"
    if os.environ.get(ENV_CALLBACK_URL):
        data["callback_url"] = os.environ[ENV_CALLBACK_URL]
    if os.environ.get(ENV_STATE_MODE):
        data["state_mode"] = os.environ[ENV_STATE_MODE]

    # 1
    server_overrides = {
        key: cli_overrides.pop(key)
        for key in ("host", "port")
        if cli_overrides.get(key) is not None
    }
    if server_overrides:
        data = _merge(data, {"server": server_overrides})
    data = _merge(data, {k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return NotionOAuthConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"literal:value"`` -- the value itself (local development only)

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

    if source.startswith("literal:"):
        return source[8:]

    raise ConfigError(f"Unknown credential source format: {source}")


def resolve_credentials(config: NotionOAuthConfig) -> ClientCredentials:
    """Build the immutable client registration from *config*.

    Raises:
        ConfigError: If the client id, client secret, or callback URL is
            missing, a source cannot be resolved, or the client id contains
            a colon (Basic auth could not encode it unambiguously).
    """
    missing = []
    if not config.client_id_source:
        missing.append(f"client_id_source (or {ENV_CLIENT_ID})")
    if not config.client_secret_source:
        missing.append(f"client_secret_source (or {ENV_CLIENT_SECRET})")
    if not config.callback_url:
        missing.append(f"callback_url (or {ENV_CALLBACK_URL})")
    if missing:
        raise ConfigError("Missing required configuration: " + ", ".join(missing))

    assert config.client_id_source and config.client_secret_source and config.callback_url
    client_id = resolve_credential(config.client_id_source)
    if ":" in client_id:
        raise ConfigError(
            f"Client id from {config.client_id_source} must not contain a colon"
        )
    return ClientCredentials(
        client_id=client_id,
        client_secret=resolve_credential(config.client_secret_source),
        redirect_uri=config.callback_url,
    )
