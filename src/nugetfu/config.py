"""Source configuration loading.

Sources come from either a YAML file::

    sources:
      - name: nuget.org
        path: https://www.nuget.org/api/v2/
      - name: local
        path: $HOME/packages
        enabled: false

or a ``NuGet.config`` XML file (``packageSources``, ``disabledPackageSources``
and ``packageSourceCredentials`` sections). Configuration is only read here;
nothing is written back.
"""
from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from .constants import Constants
from .exceptions import ConfigError
from .source import PackageSource

logger = logging.getLogger(__name__)

_ENCODED_CHAR_RE = re.compile(r"_x([0-9A-Fa-f]{4})_")
_TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass(frozen=True)
class SourceConfig:
    """One source descriptor as read from configuration."""
    name: str
    path: str
    username: Optional[str] = None
    password: Optional[str] = None
    enabled: bool = True


def default_config_path() -> str:
    """Config path from ``NUGETFU_CONFIG``, else ``NuGet.config`` in the working directory."""
    return os.environ.get(Constants.ENV_CONFIG_PATH) or os.path.join(os.getcwd(), Constants.DEFAULT_CONFIG_FILE)


def default_sources() -> List[SourceConfig]:
    """The configuration used when no file exists."""
    return [SourceConfig(Constants.DEFAULT_SOURCE_NAME, Constants.DEFAULT_SOURCE_URL)]


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def parse_yaml_config(text: str, origin: str = "<yaml>") -> List[SourceConfig]:
    """Parse YAML source configuration.

    Raises:
        ConfigError: On invalid YAML or a source lacking a name or path.
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{origin}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{origin}: expected a mapping at the top level")

    entries = data.get("sources") or []
    if not isinstance(entries, list):
        raise ConfigError(f"{origin}: 'sources' must be a list")

    configs: List[SourceConfig] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("name") or not entry.get("path"):
            raise ConfigError(f"{origin}: source #{index + 1} needs a name and a path")
        configs.append(
            SourceConfig(
                name=str(entry["name"]),
                path=str(entry["path"]),
                username=_optional_str(entry.get("username")),
                password=_optional_str(entry.get("password")),
                enabled=_as_bool(entry.get("enabled"), True),
            )
        )
    return configs


def _decode_name(name: str) -> str:
    """Undo XML name encoding such as ``My_x0020_Feed`` -> ``My Feed``."""
    return _ENCODED_CHAR_RE.sub(lambda m: chr(int(m.group(1), 16)), name)


def _adds(section: Optional[ET.Element]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if section is None:
        return values
    for add in section.findall("add"):
        key = add.get("key")
        if key is not None:
            values[key] = add.get("value", "")
    return values


def parse_nuget_config(text: str, origin: str = "<NuGet.config>") -> List[SourceConfig]:
    """Parse a ``NuGet.config`` document.

    Raises:
        ConfigError: If the document is not XML.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ConfigError(f"{origin}: invalid XML: {e}") from e

    disabled = {
        key.lower() for key, value in _adds(root.find("disabledPackageSources")).items()
        if _as_bool(value, False)
    }
    credentials: Dict[str, Dict[str, str]] = {}
    creds_section = root.find("packageSourceCredentials")
    if creds_section is not None:
        for source_elem in creds_section:
            credentials[_decode_name(source_elem.tag).lower()] = {
                key.lower(): value for key, value in _adds(source_elem).items()
            }

    configs: List[SourceConfig] = []
    for name, path in _adds(root.find("packageSources")).items():
        creds = credentials.get(name.lower(), {})
        configs.append(
            SourceConfig(
                name=name,
                path=path,
                username=creds.get("username"),
                password=creds.get("cleartextpassword"),
                enabled=name.lower() not in disabled,
            )
        )
    return configs


def load_config(path: Optional[str] = None) -> List[SourceConfig]:
    """Read source descriptors from ``path`` (or the default location).

    A missing default file yields the nuget.org source; a missing explicit
    file is an error.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    explicit = path is not None
    config_path = path if explicit else default_config_path()
    if not os.path.isfile(config_path):
        if explicit:
            raise ConfigError(f"Configuration file not found: {config_path}")
        logger.debug("No configuration at %s, using %s", config_path, Constants.DEFAULT_SOURCE_URL)
        return default_sources()

    try:
        with open(config_path, encoding="utf-8-sig") as fh:
            text = fh.read()
    except OSError as e:
        raise ConfigError(f"Couldn't read configuration {config_path}: {e}") from e

    if config_path.lower().endswith((".yaml", ".yml")):
        return parse_yaml_config(text, origin=config_path)
    return parse_nuget_config(text, origin=config_path)


def build_sources(configs: List[SourceConfig]) -> List[PackageSource]:
    """Create fresh sources from descriptors."""
    return [
        PackageSource(c.name, c.path, username=c.username, password=c.password, enabled=c.enabled)
        for c in configs
    ]


def load_sources(path: Optional[str] = None) -> List[PackageSource]:
    """Shortcut for ``build_sources(load_config(path))``."""
    return build_sources(load_config(path))
