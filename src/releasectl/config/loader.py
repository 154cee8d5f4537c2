from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from .sources import ConfigSource

SCHEMA_PATH = Path(__file__).with_name("pipeline.schema.json")

# keys kept verbatim from env vars and --set; `2.0` must not become a float
RAW_STRING_KEYS = frozenset({("version",)})


def load_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ScriptError(f"invalid YAML in {path}: {exc}", ERR_CONFIG, kind="config_error") from exc


def parse_scalar(raw: str) -> Any:
    if not raw:
        return ""
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _layer_value(parts: Sequence[str], raw: str) -> Any:
    if tuple(parts) in RAW_STRING_KEYS:
        return raw
    return parse_scalar(raw)


def deep_merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def _nest(dotted: Sequence[str], value: Any) -> dict[str, Any]:
    node: Any = value
    for part in reversed(dotted):
        node = {part: node}
    return node


def _from_file(source: ConfigSource, root: Path) -> dict[str, Any]:
    path = root / source.location
    if not path.is_file():
        if source.optional:
            return {}
        raise ScriptError(f"missing required config file: {path}", ERR_CONFIG, kind="config_error")
    data = load_yaml(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ScriptError(f"{path}: root must be a mapping", ERR_CONFIG, kind="config_error")
    return data


def _from_env(source: ConfigSource, environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    prefix = source.location
    for name in sorted(environ):
        if not name.startswith(prefix) or name == prefix:
            continue
        parts = [part.lower() for part in name[len(prefix):].split("__") if part]
        if parts:
            out = deep_merge(out, _nest(parts, _layer_value(parts, environ[name])))
    return out


def _from_args(source: ConfigSource) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for item in source.values:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            raise ScriptError(f"invalid --set value `{item}`; expected KEY=VALUE", ERR_CONFIG, kind="config_error")
        parts = [part for part in key.strip().split(".") if part]
        out = deep_merge(out, _nest(parts, _layer_value(parts, raw)))
    return out


def validate_config(payload: Mapping[str, Any]) -> None:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    try:
        jsonschema.validate(dict(payload), schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(f"config validation failed at {loc}: {exc.message}", ERR_CONFIG, kind="config_error") from exc


def build_config(
    sources: Sequence[ConfigSource],
    root: Path,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    merged: dict[str, Any] = {}
    for source in sources:
        if source.kind == "file":
            layer = _from_file(source, root)
        elif source.kind == "env":
            layer = _from_env(source, env)
        else:
            layer = _from_args(source)
        merged = deep_merge(merged, layer)
    version = merged.get("version")
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        merged["version"] = str(version)
    validate_config(merged)
    return merged
