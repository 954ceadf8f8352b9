"""Payload loading helpers: JSON/YAML files into parsed objects."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, TypeVar

import yaml

from hashobject.errors import PayloadDecodeError

T = TypeVar("T", covariant=True)

_LOGGER = logging.getLogger(__name__)


class Parser(Protocol[T]):
    """Anything exposing ``parse(mapping)``: a HashObject subclass or a registry."""

    def parse(self, input_mapping: Any) -> T: ...


def load_mapping(path: Path) -> dict[str, Any]:
    """Decode a payload file from JSON or YAML.

    Args:
        path: Payload file path. ``.json`` is decoded as JSON, anything else
            as YAML.

    Returns:
        Parsed mapping payload (empty for an empty document).

    Raises:
        PayloadDecodeError: If reading or decoding fails, or the root is not
            a mapping.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PayloadDecodeError(f"Cannot read payload {path}: {exc}") from exc
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PayloadDecodeError(f"Invalid payload JSON: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise PayloadDecodeError(f"Invalid payload YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise PayloadDecodeError("Invalid payload: root must be an object")
    _LOGGER.debug("Loaded %d top-level keys from %s", len(payload), path)
    return payload


def parse_file(target: Parser[T], path: Path) -> T:
    """Load ``path`` and parse it with ``target``.

    Args:
        target: HashObject subclass or SchemaRegistry.
        path: Payload file path.

    Returns:
        Parsed instance.
    """
    return target.parse(load_mapping(path))
