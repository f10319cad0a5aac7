# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Map workflow map YAML key-paths to 1-based line numbers using PyYAML's AST."""

import re
from typing import Any, Dict, Optional, Union

import yaml

_LAST_SEGMENT = re.compile(r"(\.[^.\[\]]+|\[\d+\])$")


def extract_line_map(content: Union[str, bytes]) -> Dict[str, int]:
    """Parse *content* as YAML and return a dict mapping key-paths to line numbers.

    Key-paths use the same form as ``DeserializationError.path``:
    ``"collect.publish"`` for mapping keys and ``"collect.publish[0]"`` for
    sequence items.

    Returns an empty dict if the YAML cannot be parsed.
    """
    try:
        doc = yaml.compose(content)
    except yaml.YAMLError:
        return {}

    result: Dict[str, int] = {}

    def walk(node: Any, prefix: str) -> None:
        if isinstance(node, yaml.MappingNode):
            for kn, vn in node.value:
                p = f"{prefix}.{kn.value}" if prefix else str(kn.value)
                result[p] = kn.start_mark.line + 1
                walk(vn, p)
        elif isinstance(node, yaml.SequenceNode):
            for i, item in enumerate(node.value):
                p = f"{prefix}[{i}]"
                result[p] = item.start_mark.line + 1
                walk(item, p)

    walk(doc, "")
    return result


def line_for(line_map: Dict[str, int], path: str) -> Optional[int]:
    """Return the line of *path*, or of its closest ancestor present in *line_map*.

    A missing ``plugin_version`` is reported at the line of the node that
    should have carried it.
    """
    while path:
        if path in line_map:
            return line_map[path]
        trimmed = _LAST_SEGMENT.sub("", path)
        if trimmed == path:
            break
        path = trimmed
    return None
