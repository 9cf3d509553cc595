"""Configuration precedence system for apireflect."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

try:
    import tomllib  # type: ignore[import-not-found]
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found, no-redef]

logger = logging.getLogger(__name__)

ENV_PREFIX = "APIREFLECT_"

DEFAULT_TRIVIAL_SCHEMAS = ("{}", '{"type":"object"}')


class ReflectorConfig:
    """Resolves reflector settings through the precedence chain.

    Defaults, then ``[tool.apireflect]`` in ``pyproject.toml``, then
    ``APIREFLECT_*`` environment variables, then keyword overrides.
    """

    def __init__(self, project_dir: Path | str | None = None, **overrides: Any) -> None:
        self.project_dir = Path(project_dir) if project_dir is not None else Path.cwd()
        self._config: dict[str, Any] = {}
        self._load_defaults()
        self._load_project_config()
        self._load_env_vars()
        self._config.update(overrides)

    def _load_defaults(self) -> None:
        self._config = {
            "openapi": "3.0.3",
            "trivial_schemas": list(DEFAULT_TRIVIAL_SCHEMAS),
            "field_titles": False,
        }

    def _load_project_config(self) -> None:
        """Load from pyproject.toml [tool.apireflect]"""
        path = self.project_dir / "pyproject.toml"
        if not path.exists():
            return
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Ignoring unreadable %s: %s", path, exc)
            return
        self._config.update(data.get("tool", {}).get("apireflect", {}))

    def _load_env_vars(self) -> None:
        """Load from APIREFLECT_* environment variables."""
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            config_key = key[len(ENV_PREFIX):].lower()
            if value.lower() in ("true", "1", "yes"):
                self._config[config_key] = True
            elif value.lower() in ("false", "0", "no"):
                self._config[config_key] = False
            elif value.lstrip().startswith("["):
                self._config[config_key] = json.loads(value)
            else:
                self._config[config_key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    @property
    def openapi_version(self) -> str:
        return str(self._config["openapi"])

    @property
    def trivial_schemas(self) -> frozenset[str]:
        """Canonical JSON forms of response schemas that carry no information."""
        # Normalized so that spacing and key order in configured values do not matter.
        return frozenset(
            json.dumps(json.loads(raw), sort_keys=True, separators=(",", ":"))
            for raw in self._config["trivial_schemas"]
        )

    @property
    def field_titles(self) -> bool:
        return bool(self._config["field_titles"])
