# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""JSON and YAML adapters for workflow maps.

Both forms share one wire shape (see ``model``); only the text encoding
differs. Decoding either returns a complete ``WorkflowMap`` or raises, never
a partially built one.
"""

import base64
import datetime
import json
import logging
from typing import Any, Optional, Union

import yaml

from .errors import DeserializationError, InvalidPayloadKind, LocatedError, SerializationError
from .line_tracker import extract_line_map, line_for
from .model import WorkflowMap

LOGGER = logging.getLogger(__name__)

Payload = Union[str, bytes, bytearray]


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    raise InvalidPayloadKind(payload)


def _log_decoded(wmap: WorkflowMap, fmt: str):
    c = wmap.collect_node
    if c is None:
        LOGGER.debug("Decoded empty workflow map from %s", fmt)
        return
    LOGGER.debug(
        "Decoded workflow map from %s: %d namespaces, %d process, %d publish nodes at collect",
        fmt,
        len(c.metric_namespaces),
        len(c.process_nodes),
        len(c.publish_nodes),
    )


def from_json(payload: Payload) -> WorkflowMap:
    """Decode a JSON workflow map from a ``str`` or ``bytes`` payload."""
    p = _payload_bytes(payload)
    try:
        data = json.loads(p)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        line = getattr(exc, "lineno", None)
        raise DeserializationError(f"invalid JSON: {exc}", line=line) from exc

    wmap = WorkflowMap.from_dict(data)
    _log_decoded(wmap, "json")
    return wmap


def from_yaml(payload: Payload) -> WorkflowMap:
    """Decode a YAML workflow map from a ``str`` or ``bytes`` payload.

    Shape errors carry the source line of the offending key when it can be
    located.
    """
    p = _payload_bytes(payload)
    try:
        data = yaml.safe_load(p)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line: Optional[int] = mark.line + 1 if mark is not None else None
        raise DeserializationError(f"invalid YAML: {exc}", line=line) from exc

    try:
        wmap = WorkflowMap.from_dict(data)
    except LocatedError as exc:
        if exc.path and exc.line is None:
            exc.line = line_for(extract_line_map(p), exc.path)
        raise
    _log_decoded(wmap, "yaml")
    return wmap


def _encode_config_value(value: Any) -> Any:
    # YAML-native scalars that safe_load can put inside an opaque config
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(wmap: WorkflowMap, indent: Optional[int] = None) -> str:
    """Encode *wmap* as JSON.

    Dates and times become ISO strings, binary values base64 strings and sets
    lists. Any other value JSON cannot hold raises ``SerializationError``.
    """
    try:
        return json.dumps(wmap.to_dict(), indent=indent, default=_encode_config_value)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"cannot encode workflow map as JSON: {exc}") from exc


def to_yaml(wmap: WorkflowMap) -> str:
    try:
        return yaml.safe_dump(wmap.to_dict(), sort_keys=False, default_flow_style=False)
    except yaml.YAMLError as exc:
        raise SerializationError(f"cannot encode workflow map as YAML: {exc}") from exc


def loads(payload: Payload, fmt: str) -> WorkflowMap:
    """Decode *payload* using the named format (``json`` or ``yaml``)."""
    if fmt == "json":
        return from_json(payload)
    if fmt == "yaml":
        return from_yaml(payload)
    raise ValueError(f"Unknown workflow map format: {fmt}")


def dumps(wmap: WorkflowMap, fmt: str, indent: Optional[int] = None) -> str:
    """Encode *wmap* using the named format (``json`` or ``yaml``).

    *indent* is passed to ``json.dumps`` unchanged and ignored for YAML.
    """
    if fmt == "json":
        return to_json(wmap, indent=indent)
    if fmt == "yaml":
        return to_yaml(wmap)
    raise ValueError(f"Unknown workflow map format: {fmt}")
