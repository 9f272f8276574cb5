"""Environment loading and the in-memory runtime configuration.

This module is the boundary between the process environment (including
the application's ``.env`` file) and the strongly shaped runtime
configuration consumed by the setup steps and the service helpers.

Role in Architecture
--------------------
- ``load_environment`` reads the project ``.env`` with python-dotenv and
  overlays the real process environment on top of it.
- ``EnvironmentReader`` re-reads that picture on every lookup so values
  written by earlier setup steps are visible to later ones.
- ``RuntimeConfig`` is a nested, dotted-key store. Writes never touch a
  file; the setup pipeline receives it through the ``ConfigWriter``
  protocol so tests can assert on writes.

Examples
--------
>>> cfg = RuntimeConfig.from_environment({"APP_ENV": "prod"})
>>> cfg.get("app.env")
'prod'
>>> cfg.set("database.connections.mysql.engine", "InnoDB")
>>> cfg.get("database.connections.mysql.engine")
'InnoDB'
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Protocol

from dotenv import dotenv_values

from stackboot.config import (
    DISCORD_DEFAULT_USERNAME,
    ENV_FILENAME,
    MAIL_QUEUE_JITTER_MAX_MS,
    MAIL_QUEUE_JITTER_MIN_MS,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "(true)"})
_NULL_VALUES = frozenset({"null", "(null)"})
_EMPTY_VALUES = frozenset({"empty", "(empty)"})


class ConfigWriter(Protocol):
    """Write access to the runtime configuration."""

    def set(self, key: str, value: Any) -> None: ...


def load_environment(
    project_root: Path, environ: Mapping[str, str] | None = None
) -> dict[str, str]:
    r"""Return the merged environment for an application checkout.

    Values from ``<project_root>/.env`` are loaded first; the process
    environment is applied on top so real environment variables always
    win over the file.

    Parameters
    ----------
    project_root : Path
        Directory holding the application's ``.env`` file.
    environ : Mapping[str, str] | None, optional
        Process environment to overlay. Defaults to ``os.environ``.

    Returns
    -------
    dict[str, str]
        Merged mapping. Keys declared in ``.env`` without a value, and keys
        whose value is the literal ``null`` or ``(null)``, are dropped;
        ``empty`` and ``(empty)`` become ``""``.

    Examples
    --------
    >>> from pathlib import Path
    >>> load_environment(Path("/nonexistent"), environ={"A": "1", "B": "null"})
    {'A': '1'}
    """
    merged: dict[str, str | None] = {}
    env_path = Path(project_root) / ENV_FILENAME
    if env_path.exists():
        merged.update(dotenv_values(env_path))
    merged.update(os.environ if environ is None else environ)
    resolved: dict[str, str] = {}
    for key, value in merged.items():
        value = normalize_env_value(value)
        if value is not None:
            resolved[key] = value
    return resolved


def normalize_env_value(value: str | None) -> str | None:
    r"""Resolve the ``null`` and ``empty`` keywords of ``.env`` files.

    ``null``/``(null)`` (any case) mean unset and ``empty``/``(empty)``
    mean the empty string. Other values are returned unchanged.

    Examples
    --------
    >>> normalize_env_value("(NULL)") is None
    True
    >>> normalize_env_value("empty")
    ''
    >>> normalize_env_value("InnoDB")
    'InnoDB'
    """
    if value is None:
        return None
    keyword = value.strip().lower()
    if keyword in _NULL_VALUES:
        return None
    if keyword in _EMPTY_VALUES:
        return ""
    return value


class EnvironmentReader:
    """Look up environment values for an application checkout.

    Every lookup reloads the ``.env`` file, so a file created by an earlier
    setup step is honoured by later ones.
    """

    def __init__(
        self, project_root: Path, environ: Mapping[str, str] | None = None
    ) -> None:
        self.project_root = Path(project_root)
        self._environ = environ

    def get(self, key: str, default: str | None = None) -> str | None:
        return load_environment(self.project_root, self._environ).get(key, default)


def env_flag(value: Any, default: bool = False) -> bool:
    """Interpret a ``.env`` style boolean (``true``, ``1``, ``on``...)."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", key, raw, default)
        return default


class RuntimeConfig:
    r"""Nested configuration store addressed with dotted keys.

    Parameters
    ----------
    data : Mapping[str, Any] | None, optional
        Initial nested mapping. It is deep-copied; the caller's mapping is
        never mutated.

    Notes
    -----
    Intermediate mappings are created on demand by ``set``. Nothing is
    ever written back to disk.

    Examples
    --------
    >>> cfg = RuntimeConfig({"app": {"name": "demo"}})
    >>> cfg.get("app.name")
    'demo'
    >>> cfg.get("app.missing", "fallback")
    'fallback'
    >>> cfg.has("app.name")
    True
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(data or {}))

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def as_dict(self) -> dict[str, Any]:
        """Return a deep copy of the whole configuration tree."""
        return copy.deepcopy(self._data)

    @classmethod
    def from_environment(cls, env: Mapping[str, str]) -> "RuntimeConfig":
        r"""Build the configuration tree from environment values.

        Parameters
        ----------
        env : Mapping[str, str]
            Merged environment, usually from :func:`load_environment`.

        Returns
        -------
        RuntimeConfig
            Configuration with the ``app``, ``database``, ``mail`` and
            ``services.discord`` sections populated.

        Notes
        -----
        ``null``/``empty`` keywords are resolved with
        :func:`normalize_env_value`. A numeric setting (mail port, jitter
        bounds) that is not an integer is logged and replaced by its default.
        """
        env = {
            key: resolved
            for key, resolved in (
                (key, normalize_env_value(value)) for key, value in env.items()
            )
            if resolved is not None
        }
        return cls(
            {
                "app": {
                    "name": env.get("APP_NAME", "Stackboot"),
                    "env": env.get("APP_ENV", "production"),
                    "debug": env_flag(env.get("APP_DEBUG")),
                    "mail_bcc": env.get("MAIL_BCC", ""),
                },
                "database": {
                    "default": env.get("DB_CONNECTION", "sqlite"),
                    "connections": {
                        "mysql": {"engine": None},
                        "mariadb": {"engine": None},
                    },
                },
                "mail": {
                    "host": env.get("MAIL_HOST", "127.0.0.1"),
                    "port": _env_int(env, "MAIL_PORT", 25),
                    "username": env.get("MAIL_USERNAME") or None,
                    "password": env.get("MAIL_PASSWORD") or None,
                    "encryption": (env.get("MAIL_ENCRYPTION") or "").lower() or None,
                    "from_address": env.get("MAIL_FROM_ADDRESS", "hello@example.com"),
                    "queue_jitter_ms": [
                        _env_int(env, "MAIL_QUEUE_JITTER_MIN_MS", MAIL_QUEUE_JITTER_MIN_MS),
                        _env_int(env, "MAIL_QUEUE_JITTER_MAX_MS", MAIL_QUEUE_JITTER_MAX_MS),
                    ],
                },
                "services": {
                    "discord": {
                        "exceptions": env_flag(env.get("DISCORD_EXCEPTIONS")),
                        "webhook_url": env.get("DISCORD_ALERT_WEBHOOK", ""),
                        "username": env.get("DISCORD_USERNAME", DISCORD_DEFAULT_USERNAME),
                        "avatar_url": env.get("DISCORD_AVATAR_URL") or None,
                    }
                },
            }
        )


__all__ = [
    "ConfigWriter",
    "EnvironmentReader",
    "RuntimeConfig",
    "env_flag",
    "load_environment",
    "normalize_env_value",
]
