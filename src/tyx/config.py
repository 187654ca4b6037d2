"""
Container configuration and its YAML/JSON/TOML loader.
"""

from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType

import yaml

from tyx.errors import ConfigError


class Activation(Enum):
    LAZY = auto()
    """
    Instances are built when first resolved.
    """

    EAGER = auto()
    """
    Instances in ``ContainerConfig.preload`` are built by ``Container.start``.
    """


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class ContainerConfig:
    activation: Activation = Activation.LAZY

    resources: Mapping[str, object] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """
    Literal values bound into the container by token, e.g. a ``Configuration`` mapping.
    """

    preload: tuple[str, ...] = ()
    """
    Tokens built by ``Container.start`` under ``Activation.EAGER``.

    Empty means every committed ``final`` Service.
    """


_KEYS = frozenset(("activation", "resources", "preload"))


def parse_config(data: Mapping[str, object]) -> ContainerConfig:
    """
    Validate a plain mapping into a :class:`ContainerConfig`.

    :param data: Parsed configuration document.
    :return: The configuration.
    :raises ConfigError: On unknown keys or malformed values.
    """
    unknown = set(data) - _KEYS
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    activation_name = data.get("activation", "lazy")
    if not isinstance(activation_name, str):
        raise ConfigError(
            f"activation must be a string, got {type(activation_name).__name__}"
        )
    try:
        activation = Activation[activation_name.upper()]
    except KeyError as e:
        raise ConfigError(f"Unknown activation: {activation_name!r}") from e

    resources = data.get("resources", {})
    if not isinstance(resources, Mapping):
        raise ConfigError(f"resources must be a mapping, got {type(resources).__name__}")
    for token in resources:
        if not isinstance(token, str):
            raise ConfigError(f"Resource token must be a string, got {type(token).__name__}")

    preload = data.get("preload", [])
    if not isinstance(preload, list) or not all(isinstance(item, str) for item in preload):
        raise ConfigError("preload must be a list of strings")

    return ContainerConfig(
        activation=activation,
        resources=MappingProxyType(dict(resources)),
        preload=tuple(preload),
    )


def load_config(file_path: Path) -> ContainerConfig:
    """
    Load a container configuration file (YAML/JSON/TOML).

    :param file_path: Path to the configuration file.
    :return: The parsed configuration.
    :raises ConfigError: If the format is not recognized or the content is invalid.
    """
    content = file_path.read_text(encoding="utf-8")

    name = file_path.name.lower()
    if name.endswith(".yaml") or name.endswith(".yml"):
        data = yaml.safe_load(content)
    elif name.endswith(".json"):
        data = json.loads(content)
    elif name.endswith(".toml"):
        data = tomllib.loads(content)
    else:
        raise ConfigError(
            f"Unrecognized configuration format: {file_path.name}. "
            f"Expected .yaml, .yml, .json, or .toml"
        )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration file must contain a mapping at top level, got {type(data).__name__}"
        )
    return parse_config(data)
