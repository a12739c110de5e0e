"""Configuration loading and validation for zikctl YAML config files."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from zikctl.core.errors import ConfigLoadError, ConfigValidationError
from zikctl.core.model import MatchRules, TransportSpec

_MAC_PREFIX_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){0,5}$")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Config:
    match: MatchRules
    transport: TransportSpec
    default_device: str | None
    sync_on_connect: bool
    warnings: tuple[str, ...] = ()


def _load_schema_validator() -> Any:
    schema_text = resources.files("zikctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "zikctl/config.yaml"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _normalize_mac_prefix(prefix: str, *, context: str) -> str:
    normalized = prefix.strip().upper().replace("-", ":")
    if not _MAC_PREFIX_RE.match(normalized):
        raise ConfigValidationError(f"{context} must be colon-separated hex octets, got '{prefix}'")
    return normalized


def _normalize_bool(value: Any, *, context: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on"}:
            return True
        if lowered in {"false", "no", "off"}:
            return False
    raise ConfigValidationError(f"{context} must be boolean true/false")


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for section, values in override.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section] = {**merged[section], **values}
        else:
            merged[section] = values
    return merged


def _build_config(doc: dict[str, Any], source: str, warnings: tuple[str, ...]) -> Config:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    match = doc["match"]
    transport = doc["transport"]
    device = doc.get("device") or {}
    read_timeout = transport.get("read_timeout_s")

    return Config(
        match=MatchRules(
            name_contains=tuple(match.get("name_contains", [])),
            mac_prefix=tuple(
                _normalize_mac_prefix(p, context="match.mac_prefix") for p in match.get("mac_prefix", [])
            ),
        ),
        transport=TransportSpec(
            channel=int(transport["channel"]),
            connect_timeout_s=float(transport.get("connect_timeout_s", 5.0)),
            read_timeout_s=float(read_timeout) if read_timeout is not None else None,
        ),
        default_device=device.get("default"),
        sync_on_connect=_normalize_bool(
            device.get("sync_on_connect", True),
            context="device.sync_on_connect",
        ),
        warnings=warnings,
    )


def load_config(path: Path | None = None) -> Config:
    """Load packaged defaults and overlay the user config file if present."""
    defaults = _read_yaml(resources.files("zikctl.data").joinpath("default.yaml"))
    user_path = path or config_path()
    warnings: list[str] = []

    if user_path.exists():
        override = _read_yaml(user_path)
        doc = _merge(defaults, override)
        overridden = sorted(section for section in override if section in defaults)
        if overridden:
            warning = f"User config {user_path} overrides packaged {', '.join(overridden)}"
            LOGGER.warning(warning)
            warnings.append(warning)
        source = str(user_path)
    elif path is not None:
        raise ConfigLoadError(f"Config file {path} does not exist")
    else:
        doc = defaults
        source = "packaged defaults"

    return _build_config(doc, source, tuple(warnings))
