# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""In-memory model of a workflow map.

A workflow map is the declared shape of a collect -> process -> publish
pipeline. The scheduler instantiates a runnable workflow from it; this module
only builds, checks and renders the tree.

Children are owned by their parent: ``add`` stores a copy of the node it is
given (its child lists copied, its opaque config shared) and nothing is ever
removed, so the tree only grows.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pulse_scheduler.config import strict_namespaces

from .errors import DeserializationError, InvalidNamespaceFormat, UnsupportedChildType

LOGGER = logging.getLogger(__name__)

NAMESPACE_PATTERN = re.compile(r"(/[^/\s]+)+")

# Wire field names shared by the JSON and YAML forms.
COLLECT_KEY = "collect"
NAMESPACES_KEY = "metric_namespaces"
PROCESS_KEY = "process"
PUBLISH_KEY = "publish"
NAME_KEY = "plugin_name"
VERSION_KEY = "plugin_version"
PROCESSOR_CONFIG_KEY = "processor_config"
PUBLISHER_CONFIG_KEY = "publisher_config"


def validate_namespace(ns: Any) -> str:
    """Return *ns* unchanged if it looks like ``/one/two/three``."""
    if not isinstance(ns, str) or not NAMESPACE_PATTERN.fullmatch(ns):
        raise InvalidNamespaceFormat(ns)
    return ns


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _expect_mapping(value: Any, path: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DeserializationError(f"expected a mapping, got {type(value).__name__}", path)
    return value


def _expect_list(value: Any, path: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DeserializationError(f"expected a list, got {type(value).__name__}", path)
    return value


def _plugin_fields(data: Dict[str, Any], path: str):
    name = data.get(NAME_KEY, "")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise DeserializationError(
            f"expected a string, got {type(name).__name__}", _child_path(path, NAME_KEY)
        )
    version = data.get(VERSION_KEY, 0)
    if version is None:
        version = 0
    # bool is an int subclass but never a valid plugin version
    if isinstance(version, bool) or not isinstance(version, int):
        raise DeserializationError(
            f"expected an integer, got {type(version).__name__}",
            _child_path(path, VERSION_KEY),
        )
    return name, version


def _copy_node(node):
    """Copy the tree structure under *node*, sharing each opaque ``config``."""
    dup = copy.copy(node)
    if isinstance(node, ProcessWorkflowMapNode):
        dup.process_nodes = [_copy_node(pr) for pr in node.process_nodes]
        dup.publish_nodes = [_copy_node(pu) for pu in node.publish_nodes]
    return dup


def _log_unknown_keys(data: Dict[str, Any], known: tuple, path: str):
    for key in data:
        if key not in known:
            LOGGER.debug("Ignoring unknown key %r at %r", key, path or "<root>")


class _ParentNode:
    """Ordered process/publish children shared by collect and process nodes."""

    node_kind = "workflow"
    process_nodes: List["ProcessWorkflowMapNode"]
    publish_nodes: List["PublishWorkflowMapNode"]

    def add(self, child: "ChildNode") -> None:
        if isinstance(child, ProcessWorkflowMapNode):
            self.process_nodes.append(_copy_node(child))
        elif isinstance(child, PublishWorkflowMapNode):
            self.publish_nodes.append(_copy_node(child))
        else:
            raise UnsupportedChildType(child, self.node_kind)

    def _load_children(self, data: Dict[str, Any], path: str):
        process_path = _child_path(path, PROCESS_KEY)
        for i, item in enumerate(_expect_list(data.get(PROCESS_KEY), process_path)):
            self.process_nodes.append(
                ProcessWorkflowMapNode.from_dict(item, f"{process_path}[{i}]")
            )
        publish_path = _child_path(path, PUBLISH_KEY)
        for i, item in enumerate(_expect_list(data.get(PUBLISH_KEY), publish_path)):
            self.publish_nodes.append(
                PublishWorkflowMapNode.from_dict(item, f"{publish_path}[{i}]")
            )


@dataclass
class PublishWorkflowMapNode:
    """Terminal stage emitting data to a sink. Always a leaf."""

    name: str = ""
    version: int = 0
    config: Any = None

    def render(self, pad: str) -> str:
        out = pad + f"\tName: {self.name}\n"
        out += pad + f"\tVersion: {self.version}\n"
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            NAME_KEY: self.name,
            VERSION_KEY: self.version,
            PUBLISHER_CONFIG_KEY: self.config,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "PublishWorkflowMapNode":
        data = _expect_mapping(data, path)
        _log_unknown_keys(data, (NAME_KEY, VERSION_KEY, PUBLISHER_CONFIG_KEY), path)
        name, version = _plugin_fields(data, path)
        return cls(name=name, version=version, config=data.get(PUBLISHER_CONFIG_KEY))


@dataclass
class ProcessWorkflowMapNode(_ParentNode):
    """Intermediate transformation stage.

    ``config`` is opaque: it is carried verbatim for the plugin layer and
    never inspected here.
    """

    node_kind = "process"

    name: str = ""
    version: int = 0
    process_nodes: List["ProcessWorkflowMapNode"] = field(default_factory=list)
    publish_nodes: List[PublishWorkflowMapNode] = field(default_factory=list)
    config: Any = None

    def render(self, pad: str) -> str:
        out = pad + f"Name: {self.name}\n"
        out += pad + f"Version: {self.version}\n"
        out += pad + "Process Nodes:\n"
        for pr in self.process_nodes:
            out += pr.render(pad)
        out += pad + "Publish Nodes:\n"
        for pu in self.publish_nodes:
            out += pu.render(pad)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            NAME_KEY: self.name,
            VERSION_KEY: self.version,
            PROCESS_KEY: [pr.to_dict() for pr in self.process_nodes],
            PUBLISH_KEY: [pu.to_dict() for pu in self.publish_nodes],
            PROCESSOR_CONFIG_KEY: self.config,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "ProcessWorkflowMapNode":
        data = _expect_mapping(data, path)
        _log_unknown_keys(
            data, (NAME_KEY, VERSION_KEY, PROCESS_KEY, PUBLISH_KEY, PROCESSOR_CONFIG_KEY), path
        )
        name, version = _plugin_fields(data, path)
        node = cls(name=name, version=version, config=data.get(PROCESSOR_CONFIG_KEY))
        node._load_children(data, path)
        return node


ChildNode = Union[ProcessWorkflowMapNode, PublishWorkflowMapNode]


@dataclass
class CollectWorkflowMapNode(_ParentNode):
    """Root stage: the metric namespaces to gather and their downstream stages."""

    node_kind = "collect"

    metric_namespaces: List[str] = field(default_factory=list)
    process_nodes: List[ProcessWorkflowMapNode] = field(default_factory=list)
    publish_nodes: List[PublishWorkflowMapNode] = field(default_factory=list)

    def add_metric_namespace(self, ns: str, strict: Optional[bool] = None) -> None:
        """Append *ns* verbatim.

        With ``strict`` (default: the ``strict_namespaces`` setting) the value
        must be a slash-delimited absolute path. Non-string values are always
        rejected.
        """
        if strict is None:
            strict = strict_namespaces()
        if strict:
            validate_namespace(ns)
        elif not isinstance(ns, str):
            raise InvalidNamespaceFormat(ns)
        self.metric_namespaces.append(ns)

    def render(self, pad: str) -> str:
        out = pad + "Metric Namespaces:\n"
        for ns in self.metric_namespaces:
            out += pad + "\t\t" + ns + "\n"
        out += "\n"
        out += pad + "Process Nodes:\n"
        for pr in self.process_nodes:
            out += pr.render(pad)
        out += "\n"
        out += pad + "Publish Nodes:\n"
        for pu in self.publish_nodes:
            out += pu.render(pad)
        out += "\n"
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            NAMESPACES_KEY: list(self.metric_namespaces),
            PROCESS_KEY: [pr.to_dict() for pr in self.process_nodes],
            PUBLISH_KEY: [pu.to_dict() for pu in self.publish_nodes],
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = COLLECT_KEY) -> "CollectWorkflowMapNode":
        data = _expect_mapping(data, path)
        _log_unknown_keys(data, (NAMESPACES_KEY, PROCESS_KEY, PUBLISH_KEY), path)
        node = cls()
        ns_path = _child_path(path, NAMESPACES_KEY)
        for i, ns in enumerate(_expect_list(data.get(NAMESPACES_KEY), ns_path)):
            if not isinstance(ns, str):
                raise DeserializationError(
                    f"expected a string, got {type(ns).__name__}", f"{ns_path}[{i}]"
                )
            try:
                node.add_metric_namespace(ns)
            except InvalidNamespaceFormat as exc:
                exc.path = f"{ns_path}[{i}]"
                raise
        node._load_children(data, path)
        return node


@dataclass
class WorkflowMap:
    """A map of a desired workflow, used by the scheduler to build a runnable one."""

    collect_node: Optional[CollectWorkflowMapNode] = None

    def render(self) -> str:
        out = "Workflow\n"
        out += "\tCollect:\n"
        if self.collect_node is not None:
            out += self.collect_node.render("\t\t")
        else:
            out += "\n"
        return out

    def __str__(self) -> str:
        return self.render()

    def to_dict(self) -> Dict[str, Any]:
        return {
            COLLECT_KEY: self.collect_node.to_dict() if self.collect_node is not None else None
        }

    @classmethod
    def from_dict(cls, data: Any) -> "WorkflowMap":
        data = _expect_mapping(data, "")
        _log_unknown_keys(data, (COLLECT_KEY,), "")
        collect = data.get(COLLECT_KEY)
        if collect is None:
            return cls()
        return cls(collect_node=CollectWorkflowMapNode.from_dict(collect, COLLECT_KEY))
