# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""CSRF filter settings from YAML/TOML files and ``CSRFLY_*`` env vars.

A file such as::

    csrfly:
      security:
        csrf:
          token_lookup: form:_csrf
          cookie_secure: true
      logging:
        level:
          root: INFO

is loaded with :meth:`Config.from_file`. ``CSRFLY_SECURITY_CSRF_COOKIE_SECURE``
overrides ``csrfly.security.csrf.cookie_secure``. :meth:`Config.bind` fills a
``@config_properties`` dataclass such as
:class:`~csrfly.config.properties.csrf.CsrfProperties`.
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_CONFIG_PROPERTIES_ATTR = "__csrfly_config_prefix__"

_ENV_PREFIX = "CSRFLY_"

# Env values arrive as strings; typed fields are converted on bind.
_COERCERS: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: lambda value: value.strip().lower() in ("true", "1", "yes", "on"),
}


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="csrfly.security.csrf")
        @dataclass
        class CsrfProperties:
            cookie_name: str = "_csrf"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Nested settings with dot-notation access.

    Priority (highest wins):
    1. Environment variables (``csrfly.security.csrf.cookie_name`` reads
       ``CSRFLY_SECURITY_CSRF_COOKIE_NAME``)
    2. Profile overlay files, in the order given
    3. The base file or dict
    4. Dataclass defaults on :meth:`bind`
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load *path* and the overlays of *active_profiles*.

        ``csrfly.yaml`` with profile ``prod`` also reads ``csrfly-prod.yaml``
        from the same directory. Missing files are skipped, so an absent
        base file gives an empty config and every CSRF option its default.
        """
        path = Path(path)
        if not path.is_file():
            return cls()

        data = _read(path)
        for profile in active_profiles or []:
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.is_file():
                data = _merge(data, _read(overlay))
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at dot-notation *key*, env var first."""
        env_val = os.environ.get(_env_key(key))
        if env_val is not None:
            return env_val
        value = self._walk(key)
        return default if value is None else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the mapping under *prefix*, or ``{}``."""
        section = self._walk(prefix)
        return section if isinstance(section, dict) else {}

    def _walk(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        return current

    def bind(self, config_cls: type[T]) -> T:
        """Build a ``@config_properties`` dataclass from this config.

        Fields missing from the config keep their defaults. Keys may use
        dashes or underscores (``cookie-max-age`` or ``cookie_max_age``).
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            if not field.init:
                continue
            value = self.get(f"{prefix}.{field.name}")
            if value is None:
                value = self.get(f"{prefix}.{field.name.replace('_', '-')}")
            if value is None:
                continue
            coerce = _COERCERS.get(hints.get(field.name))
            if coerce is not None and isinstance(value, str):
                value = coerce(value)
            kwargs[field.name] = value

        return config_cls(**kwargs)


def _env_key(key: str) -> str:
    return _ENV_PREFIX + key.removeprefix("csrfly.").upper().replace(".", "_").replace("-", "_")


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
