"""
docfold configuration management (YAML layers, environment overrides, schema).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import jsonschema
import yaml

from docfold.core.exceptions import ConfigError
from docfold.core.utils.merge import deep_merge
from docfold.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAMES = (".docfold.yml", ".docfold.yaml", "docfold.yml")
ENV_PREFIX = "DOCFOLD_"


class ConfigManager:
    """Load, merge, and validate docfold configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: DOCFOLD_<section>__<key>
    2. Explicit config file passed to :meth:`load_config`
    3. Project config: first of .docfold.yml / .docfold.yaml / docfold.yml in the project root
    4. Bundled defaults: docfold.data/config/defaults.yaml
    """

    def __init__(self, project_root: Optional[Path] = None) -> None:
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self.defaults_path = get_data_path("config", "defaults.yaml")

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as exc:
            raise ConfigError(f"Config file not found: {path}", context={"path": str(path)}) from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}", context={"path": str(path)})
        return data

    def find_project_config(self) -> Optional[Path]:
        for name in PROJECT_CONFIG_NAMES:
            candidate = self.project_root / name
            if candidate.is_file():
                return candidate
        return None

    def validate_schema(self, config: Dict[str, Any]) -> None:
        schema = read_yaml("schemas", "config.schema.yaml")
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        if errors:
            first = errors[0]
            where = ".".join(str(p) for p in first.path) or "<root>"
            raise ConfigError(
                f"Invalid configuration at {where}: {first.message}",
                context={"errors": [e.message for e in errors]},
            )

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip() == "null":
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segs = [seg.lower() for seg in raw.split("__")]
            if not raw or any(not seg for seg in segs):
                logger.warning("Ignoring malformed %s* variable: %s", ENV_PREFIX, key)
                continue
            yield segs, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Dict[str, Any] = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def load_config(
        self,
        path: Optional[Union[str, Path]] = None,
        *,
        validate: bool = True,
    ) -> Dict[str, Any]:
        """Return the merged configuration mapping.

        Args:
            path: Optional explicit config file layered over the project file
            validate: Validate the merged result against the bundled schema

        Raises:
            ConfigError: On unreadable files, invalid YAML, or schema violations
        """
        cfg = self.load_yaml(self.defaults_path)

        project_file = self.find_project_config()
        if project_file is not None:
            logger.debug("Loading project config %s", project_file)
            cfg = deep_merge(cfg, self.load_yaml(project_file))

        if path is not None:
            cfg = deep_merge(cfg, self.load_yaml(Path(path)))

        self.apply_env_overrides(cfg)

        if validate:
            self.validate_schema(cfg)
        return cfg


def load_config(
    path: Optional[Union[str, Path]] = None,
    *,
    project_root: Optional[Path] = None,
    validate: bool = True,
) -> Dict[str, Any]:
    """Convenience wrapper around :meth:`ConfigManager.load_config`."""
    return ConfigManager(project_root).load_config(path, validate=validate)


__all__ = ["ConfigManager", "load_config", "PROJECT_CONFIG_NAMES"]
