"""Translator configuration: namespace prefixes and wire substitutions."""

import json
from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin

TIMESTAMP_TYPE = "time.Time"
QUANTITY_TYPE = "github.com/oasisprotocol/oasis-core/go/common/quantity.Quantity"

# Well-known value types whose wire encoding differs from their in-memory shape
DEFAULT_SUBSTITUTIONS: dict[str, str] = {
    TIMESTAMP_TYPE: "int64",
    QUANTITY_TYPE: "list<uint8>",
}


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be used."""


@dataclass
class TranslatorConfig(DataClassJsonMixin):
    """Configuration for a translation run.

    prefixes maps a namespace identifier to the prefix used for the names of
    the struct types declared in it. substitutions maps a qualified type name
    (``namespace.Name``) to the type expression it is encoded as on the wire.
    """

    prefixes: dict[str, str]
    substitutions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SUBSTITUTIONS))
    header: str | None = None


def load_config(path: str) -> TranslatorConfig:
    """Load a translator configuration from a JSON file."""
    with open(path, encoding="utf-8") as f:
        text = f.read()

    try:
        config = TranslatorConfig.from_json(text)
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        raise ConfigError(f"invalid configuration {path}: {e}") from e

    if not isinstance(config.prefixes, dict):
        raise ConfigError(f"invalid configuration {path}: prefixes must be an object")

    if not isinstance(config.substitutions, dict):
        raise ConfigError(f"invalid configuration {path}: substitutions must be an object")

    for namespace, prefix in config.prefixes.items():
        if not isinstance(prefix, str):
            raise ConfigError(f"prefix for namespace {namespace} must be a string")
        if not prefix:
            raise ConfigError(f"empty prefix for namespace {namespace}")

    for name, expr in config.substitutions.items():
        if not isinstance(expr, str):
            raise ConfigError(f"substitution for {name} must be a type expression string")

    return config


class NamespaceMap:
    """Fixed namespace to prefix mapping that remembers which entries were used."""

    def __init__(self, prefixes: dict[str, str]):
        self._prefixes = dict(prefixes)
        self._consulted: set[str] = set()

    def lookup(self, namespace: str) -> str | None:
        """Return the prefix for a namespace, marking the namespace as consulted."""
        self._consulted.add(namespace)
        return self._prefixes.get(namespace)

    def unconsulted(self) -> list[str]:
        """Configured namespaces that were never looked up, sorted."""
        return sorted(ns for ns in self._prefixes if ns not in self._consulted)
