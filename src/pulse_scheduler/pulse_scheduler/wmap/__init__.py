# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Workflow map model and codecs.

Public API
----------
WorkflowMap               Root of a workflow map; holds at most one collect node.
CollectWorkflowMapNode    Metric namespaces plus downstream process/publish nodes.
ProcessWorkflowMapNode    Transformation stage; nests process/publish nodes.
PublishWorkflowMapNode    Leaf stage emitting data to a sink.
from_json / from_yaml     Decode a ``str`` or ``bytes`` payload into a WorkflowMap.
to_json / to_yaml         Encode a WorkflowMap using the wire field names.
"""

from .codec import dumps, from_json, from_yaml, loads, to_json, to_yaml
from .errors import (
    DeserializationError,
    InvalidNamespaceFormat,
    InvalidPayloadKind,
    LocatedError,
    SerializationError,
    UnsupportedChildType,
    WorkflowMapError,
)
from .model import (
    ChildNode,
    CollectWorkflowMapNode,
    ProcessWorkflowMapNode,
    PublishWorkflowMapNode,
    WorkflowMap,
    validate_namespace,
)
from .sample import sample_workflow_map, sample_workflow_map_json

__all__ = [
    "WorkflowMap",
    "CollectWorkflowMapNode",
    "ProcessWorkflowMapNode",
    "PublishWorkflowMapNode",
    "ChildNode",
    "validate_namespace",
    "from_json",
    "from_yaml",
    "to_json",
    "to_yaml",
    "loads",
    "dumps",
    "sample_workflow_map",
    "sample_workflow_map_json",
    "WorkflowMapError",
    "InvalidPayloadKind",
    "DeserializationError",
    "UnsupportedChildType",
    "InvalidNamespaceFormat",
    "LocatedError",
    "SerializationError",
]
