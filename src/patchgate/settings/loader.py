from typing import Any, Dict, Set, Union
import json
import os
import re
from pathlib import Path

import json5  # type: ignore
import yaml
from pydantic import ValidationError

from patchgate.errors import SettingsError
from .models import Settings, VAR_PATTERN


def _collect_variables(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Collect variables from the config. Supports:
      - mapping: variables: { KEY: default }
      - list of one-key mappings: variables: [ {KEY: default}, ... ]
    """
    out: Dict[str, Any] = {}
    vars_spec = doc.get("variables")
    if vars_spec is None:
        return out
    if isinstance(vars_spec, dict):
        for k, v in vars_spec.items():
            if isinstance(k, str):
                out[k] = v
    elif isinstance(vars_spec, list):
        for item in vars_spec:
            if isinstance(item, dict):
                for k, v in item.items():
                    if isinstance(k, str):
                        out[k] = v
    else:
        raise SettingsError("'variables' must be a mapping or a list of mappings")
    return out


def _lookup_var_value(name: str, vars_map: Dict[str, Any]) -> tuple[bool, Any]:
    """
    Resolve NAME from vars_map or env:NAME from the environment.
    Returns (found, value); unresolved placeholders are left unchanged.
    """
    if name.startswith("env:"):
        env_name = name[4:]
        val = os.getenv(env_name) if env_name else None
        if val is None:
            return False, None
        return True, val

    if name in vars_map:
        return True, vars_map[name]

    return False, None


def _resolve_variables(vars_map: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve full-match references between variables (a: ${b}).
    Detects cycles and raises SettingsError.
    """
    resolved: Dict[str, Any] = {}
    resolving: Set[str] = set()

    def resolve_one(name: str) -> Any:
        if name in resolved:
            return resolved[name]
        if name in resolving:
            raise SettingsError(f"Detected variable resolution cycle at '{name}'")
        resolving.add(name)
        val = vars_map.get(name)
        res = val
        if isinstance(val, str):
            m = VAR_PATTERN.fullmatch(val)
            if m:
                ref = m.group(1)
                if ref.startswith("env:"):
                    found, env_val = _lookup_var_value(ref, vars_map)
                    res = env_val if found else val
                elif ref in vars_map:
                    res = resolve_one(ref)
        resolved[name] = res
        resolving.remove(name)
        return res

    for k in vars_map.keys():
        resolve_one(k)
    return resolved


def _interpolate_string(s: str, vars_map: Dict[str, Any]) -> str:
    """Interpolate ${...} placeholders; '$${NAME}' renders as a literal '${NAME}'."""

    def repl(m: re.Match) -> str:
        found, val = _lookup_var_value(m.group(1), vars_map)
        if not found:
            return m.group(0)
        if val is None:
            return ""
        if isinstance(val, (dict, list)):
            return json.dumps(val, ensure_ascii=False)
        return str(val)

    interpolated = VAR_PATTERN.sub(repl, s)
    return interpolated.replace("$${", "${")


def _apply_variables(obj: Any, vars_map: Dict[str, Any]) -> Any:
    if isinstance(obj, str):
        m = VAR_PATTERN.fullmatch(obj)
        if m:
            found, val = _lookup_var_value(m.group(1), vars_map)
            return val if found else obj
        return _interpolate_string(obj, vars_map)
    if isinstance(obj, dict):
        return {k: _apply_variables(v, vars_map) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_apply_variables(v, vars_map) for v in obj]
    return obj


def _load_raw_file(path: Path) -> Any:
    ext = path.suffix.lower()
    if ext not in {".yaml", ".yml", ".json5", ".jsonc", ".json"}:
        raise SettingsError(f"Unsupported config file extension: {ext}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Failed to read config file {path}: {exc}") from exc
    try:
        if ext in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json5.loads(text)
    except (yaml.YAMLError, ValueError) as exc:
        raise SettingsError(f"Failed to parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    return data


def load_settings(path: Union[str, Path]) -> Settings:
    data = _load_raw_file(Path(path).resolve())
    if not isinstance(data, dict):
        raise SettingsError("Root configuration must be a mapping/object")

    vars_map = _resolve_variables(_collect_variables(data))
    data = dict(data)
    data.pop("variables", None)
    data = _apply_variables(data, vars_map)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid configuration in {path}: {exc}") from exc
