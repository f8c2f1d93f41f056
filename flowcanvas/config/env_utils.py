"""Environment-variable helpers for config defaults."""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Callable, Dict

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _field_default(f: Field) -> Any:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:  # type: ignore[misc]
        return f.default_factory()  # type: ignore[misc]
    return None


def _coerce(raw: str, default: Any) -> Any:
    # bool before int: bool is an int subclass
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def read_env_defaults(env_map: Dict[str, str], dataclass_fields: Dict[str, Field]) -> Dict[str, Any]:
    """Build constructor kwargs from environment variables.

    Only fields listed in ``env_map`` whose variable is set are returned;
    values are coerced to the type of the field's default. Unparseable
    values are logged and skipped so the dataclass default applies.
    """
    result: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = os.environ.get(env_name)
        if raw is None or field_name not in dataclass_fields:
            continue
        default = _field_default(dataclass_fields[field_name])
        try:
            result[field_name] = _coerce(raw, default)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_name}: {raw!r}")
    return result


def env_sync(env_name: str) -> Callable[[Any, Any], None]:
    """Return an ``apply_change`` hook that mirrors the new value into the env."""

    def _apply(_old: Any, new: Any) -> None:
        os.environ[env_name] = str(new)

    return _apply
